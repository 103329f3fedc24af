import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import os
from datetime import datetime
from typing import Optional
from .constants import LEG_NAMES, LEG_LABELS
from .models import RouteEmissions, TotalEmissions
import logging

logger = logging.getLogger(__name__)

# ============================================================================
# VISUALIZER CLASS
# ============================================================================

current_directory = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
report_directory = os.path.join(current_directory, 'reports')


class Visualizer:
    def __init__(self, mode: str = "single_run", output_root: Optional[str] = None):
        """
        Initialize Visualizer.
        mode: subdirectory name under the reports folder (e.g. 'single_run')
        """
        self.mode = mode
        self.output_root = output_root or report_directory
        self._setup_style()
        self.session_dir = self._create_session_dir()

    def _setup_style(self):
        """Configure matplotlib for clean report plots."""
        plt.rcParams.update(plt.rcParamsDefault)

        plt.rcParams.update({
            'font.family': 'sans-serif',
            'font.sans-serif': ['Arial', 'Helvetica', 'Calibri', 'DejaVu Sans'],
            'font.size': 12,
            'axes.titlesize': 16,
            'axes.titleweight': 'bold',
            'axes.labelsize': 13,
            'xtick.labelsize': 11,
            'ytick.labelsize': 11,
            'legend.fontsize': 11,
            'text.color': '#2C3E50',
            'axes.labelcolor': '#2C3E50',
            'xtick.color': '#2C3E50',
            'ytick.color': '#2C3E50',
            'axes.spines.top': False,
            'axes.spines.right': False,
            'axes.spines.left': False,
            'grid.color': '#E0E0E0',
            'grid.linestyle': ':',
            'axes.grid': True,
            'axes.grid.axis': 'x',
            'axes.axisbelow': True,
        })

        self.colors = {
            'base': '#5D6D7E',       # Slate
            'transport': '#FF8A65',  # Light Coral
            'leg': '#4DB6AC',        # Teal
            'missing': '#E0E0E0',
            'text': '#2C3E50',
        }

    def _create_session_dir(self) -> str:
        """Create the specific directory for this session's plots."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.output_root, self.mode, timestamp)
        os.makedirs(path, exist_ok=True)
        return path

    def get_save_path(self, filename: str) -> str:
        return os.path.join(self.session_dir, filename)

    def plot_leg_breakdown(self, total: TotalEmissions, route: RouteEmissions, product_name: str = "") -> str:
        """Horizontal bars of CO2 per transport leg, base product included."""
        labels = ["Base product"]
        values = [total.base_product.co2_kg]
        colors = [self.colors['base']]
        for name in LEG_NAMES:
            hop = route.get_leg(name)
            labels.append(LEG_LABELS[name])
            values.append(hop.co2_kg if hop is not None else 0.0)
            colors.append(self.colors['leg'] if hop is not None else self.colors['missing'])

        fig, ax = plt.subplots(figsize=(10, 6), dpi=150)
        y = range(len(labels))
        bars = ax.barh(y, values, color=colors, height=0.6, edgecolor='none')
        ax.set_yticks(list(y))
        ax.set_yticklabels(labels)
        ax.invert_yaxis()
        ax.set_xlabel("Emissions (kg CO2 per unit)", fontweight='bold')
        title = "Emissions by Supply-Chain Leg"
        if product_name:
            title += f"\n{product_name}"
        ax.set_title(title, pad=20, loc='left')

        peak = max(values) if values else 0.0
        for bar, value in zip(bars, values):
            if value > 0:
                ax.text(bar.get_width() + peak * 0.01, bar.get_y() + bar.get_height() / 2,
                        f'{value:.3f}', va='center', fontsize=10, color=self.colors['text'])

        plt.tight_layout()
        filepath = self.get_save_path("leg_breakdown.png")
        plt.savefig(filepath, dpi=300, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"   [Plot] Saved leg breakdown to: {filepath}")
        return filepath

    def plot_footprint_split(self, total: TotalEmissions, product_name: str = "") -> str:
        """Donut of base product vs transportation CO2."""
        values = [total.base_product.co2_kg, total.transportation.co2_kg]
        labels = ["Base product", "Transportation"]

        fig, ax = plt.subplots(figsize=(7, 7), dpi=150)
        if sum(values) > 0:
            ax.pie(
                values, labels=labels, colors=[self.colors['base'], self.colors['transport']],
                autopct='%1.1f%%', startangle=90, wedgeprops={'width': 0.4, 'edgecolor': 'white'}
            )
        ax.text(0, 0, f"{total.total.co2_kg:.3f}\nkg CO2", ha='center', va='center',
                fontsize=14, fontweight='bold', color=self.colors['text'])
        title = "Footprint Split"
        if product_name:
            title += f"\n{product_name}"
        ax.set_title(title, pad=20)
        ax.axis('equal')

        filepath = self.get_save_path("footprint_split.png")
        plt.savefig(filepath, dpi=300, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"   [Plot] Saved footprint split to: {filepath}")
        return filepath

    def generate_all_plots(self, total: TotalEmissions, route: RouteEmissions, product_name: str = ""):
        return [
            self.plot_leg_breakdown(total, route, product_name),
            self.plot_footprint_split(total, product_name),
        ]
