import logging
import sys
import os
from typing import Optional

import colorama
from colorama import Fore, Style


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter to add colors to log levels for console output.
    """
    def __init__(self, fmt: str, use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

        self.COLORS = {
            logging.DEBUG: Fore.BLUE,
            logging.INFO: Fore.GREEN,
            logging.WARNING: Fore.YELLOW,
            logging.ERROR: Fore.RED,
            logging.CRITICAL: Fore.RED + Style.BRIGHT,
        }

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)

        # Colour a copy so other handlers still see the plain record
        color = self.COLORS.get(record.levelno, "")
        reset = Style.RESET_ALL
        styled = logging.makeLogRecord(record.__dict__)
        styled.levelname = f"{color}{record.levelname}{reset}"
        styled.msg = f"{color}{record.getMessage()}{reset}"
        styled.args = None
        return super().format(styled)


def setup_logging(
    console_level: int = logging.INFO,
    file_path: Optional[str] = None,
    file_level: int = logging.DEBUG,
    no_color: bool = False
) -> logging.Logger:
    """
    Sets up the root logger with:
    - Console handler (colored by level, message only)
    - Optional File handler (clean text, detailed format)
    """
    colorama.init(autoreset=True)

    if os.environ.get("NO_COLOR"):
        no_color = True

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)  # Capture all, handlers filter

    # Avoid duplicates on reload
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)

    is_tty = sys.stdout.isatty() if hasattr(sys.stdout, "isatty") else False
    use_color = is_tty and not no_color

    # Colour carries the level for INFO, WARNING/ERROR keep a prefix
    console_fmt_str = "%(message)s" if console_level <= logging.INFO else "%(levelname)s: %(message)s"
    console_handler.setFormatter(ColoredFormatter(console_fmt_str, use_color=use_color))
    logger.addHandler(console_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path, mode='w', encoding='utf-8')
        file_handler.setLevel(file_level)
        file_fmt = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(file_fmt)
        logger.addHandler(file_handler)

    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger
