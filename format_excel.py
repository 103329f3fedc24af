import os
import sys

import pandas as pd

sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from bottle_trace.config import DEFAULT_CONFIG_PATH  # noqa: E402

# Parameter sheet layout: Section, Key, Value, Unit, Description.
# KEY must stay identical to the names read in constants.py.

PARAMS = [
    # --- SECTION: GLOBAL ---
    {
        "Key": "GEOCODER_USER_AGENT",
        "Value": "bottle-trace/0.1 (CHANGE_THIS_TO_YOUR_EMAIL@DOMAIN)",
        "Unit": "Text",
        "Section": "1. Services",
        "Description": "User-agent string sent with OpenStreetMap geocoding and OSRM requests."
    },
    {
        "Key": "NOMINATIM_URL",
        "Value": "https://nominatim.openstreetmap.org",
        "Unit": "URL",
        "Section": "1. Services",
        "Description": "Base URL of the Nominatim geocoder (search and reverse)."
    },
    {
        "Key": "OSRM_URL",
        "Value": "http://router.project-osrm.org",
        "Unit": "URL",
        "Section": "1. Services",
        "Description": "Base URL of the OSRM routing service used for route polylines."
    },
    {
        "Key": "DISTRIBUTOR_LOOKUP_URL",
        "Value": "",
        "Unit": "URL",
        "Section": "1. Services",
        "Description": "Distributor lookup endpoint. Called with ?zip=<5-digit ZIP>."
    },
    {
        "Key": "WATER_SOURCE_LOOKUP_URL",
        "Value": "",
        "Unit": "URL",
        "Section": "1. Services",
        "Description": "Water-source lookup endpoint. Called with ?lat=..&lng=.. of the bottling plant."
    },
    {
        "Key": "HTTP_TIMEOUT_S",
        "Value": 15.0,
        "Unit": "s",
        "Section": "1. Services",
        "Description": "Timeout applied to every external HTTP request."
    },

    # --- SECTION: DATA ---
    {
        "Key": "FACILITY_DIRECTORY_PATH",
        "Value": "data/facilities.csv",
        "Unit": "Path",
        "Section": "2. Data",
        "Description": "Spreadsheet (xlsx or csv) with columns id, name, address, type, lat, lng."
    },
    {
        "Key": "AUDIT_ENABLED",
        "Value": False,
        "Unit": "Bool",
        "Section": "2. Data",
        "Description": "Write every hop and total calculation to reports/audit_<session>.txt."
    },

    # --- SECTION: TRANSPORT EMISSIONS ---
    {
        "Key": "EMISSIONFACTOR_TRUCK",
        "Value": 0.15,
        "Unit": "kgCO2/kg·km",
        "Section": "3. Transport Emissions",
        "Description": "Long-haul truck emission factor (plant to plant, plant to distributor)."
    },
    {
        "Key": "EMISSIONFACTOR_RAIL",
        "Value": 0.03,
        "Unit": "kgCO2/kg·km",
        "Section": "3. Transport Emissions",
        "Description": "Rail freight emission factor."
    },
    {
        "Key": "EMISSIONFACTOR_SHIP",
        "Value": 0.01,
        "Unit": "kgCO2/kg·km",
        "Section": "3. Transport Emissions",
        "Description": "Sea freight emission factor."
    },
    {
        "Key": "EMISSIONFACTOR_LAST_MILE",
        "Value": 0.25,
        "Unit": "kgCO2/kg·km",
        "Section": "3. Transport Emissions",
        "Description": "Last-mile delivery emission factor (distributor to consumer)."
    },
    {
        "Key": "UNIT_WEIGHT_KG",
        "Value": 0.025,
        "Unit": "kg",
        "Section": "3. Transport Emissions",
        "Description": "Mass of one unit of product (one bottle) carried along each leg."
    },
]


def create_formatted_excel(output_path: str = DEFAULT_CONFIG_PATH):
    df = pd.DataFrame(PARAMS)
    df = df[["Section", "Key", "Value", "Unit", "Description"]]

    os.makedirs(os.path.dirname(output_path), exist_ok=True)

    writer = pd.ExcelWriter(output_path, engine='xlsxwriter')
    df.to_excel(writer, index=False, sheet_name='Parameters')

    workbook = writer.book
    worksheet = writer.sheets['Parameters']

    header_fmt = workbook.add_format({
        'bold': True,
        'text_wrap': True,
        'valign': 'top',
        'fg_color': '#4F81BD',
        'font_color': '#FFFFFF',
        'border': 1
    })
    section_fmt = workbook.add_format({'bold': True, 'bg_color': '#DCE6F1', 'border': 1})
    key_fmt = workbook.add_format({'bold': True, 'font_color': '#333333', 'bg_color': '#F2F2F2', 'border': 1})
    value_fmt = workbook.add_format({'bg_color': '#FFFFCC', 'border': 1})  # editable
    text_fmt = workbook.add_format({'text_wrap': True, 'valign': 'top', 'border': 1})

    worksheet.set_column('A:A', 25)  # Section
    worksheet.set_column('B:B', 30)  # Key
    worksheet.set_column('C:C', 40, value_fmt)  # Value
    worksheet.set_column('D:D', 14)  # Unit
    worksheet.set_column('E:E', 70, text_fmt)  # Description

    for col_num, value in enumerate(df.columns.values):
        worksheet.write(0, col_num, value, header_fmt)

    for row_num, row_data in enumerate(PARAMS):
        r = row_num + 1
        worksheet.write(r, 0, row_data["Section"], section_fmt)
        worksheet.write(r, 1, row_data["Key"], key_fmt)
        worksheet.write(r, 2, row_data["Value"], value_fmt)
        worksheet.write(r, 3, row_data["Unit"], text_fmt)
        worksheet.write(r, 4, row_data["Description"], text_fmt)

    writer.close()
    print(f"Formatted Excel created at {output_path}")


if __name__ == "__main__":
    create_formatted_excel(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH)
