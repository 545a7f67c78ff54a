"""Shared fixtures: a small but complete set of in-memory datasets."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings
from core.data import DataContext


def _sales_row(order_id, sales, city, category, date, mode, region, product, discount="0.1", late="0"):
    return {
        "Order Item Id": order_id,
        "Sales": sales,
        "Order Item Discount Rate": discount,
        "Late_delivery_risk": late,
        "Customer City": city,
        "Category Name": category,
        "order date (DateOrders)": date,
        "Shipping Mode": mode,
        "Order Region": region,
        "Product Name": product,
    }


SAMPLE_TABLES = {
    "forecasts": [
        {"Date": "2024-03-04", "Forecasted_Demand": "10", "PRODUCT_CARD_ID": "1", "PRODUCT_NAME": "Pump A"},
        {"Date": "2024-03-06", "Forecasted_Demand": "20", "PRODUCT_CARD_ID": "1", "PRODUCT_NAME": "Pump A"},
        {"Date": "2024-04-15", "Forecasted_Demand": "30", "PRODUCT_CARD_ID": "2", "PRODUCT_NAME": "Pump B"},
        {"Date": "2024-12-30", "Forecasted_Demand": "5", "PRODUCT_CARD_ID": "2", "PRODUCT_NAME": "Pump B renamed"},
        {"Date": "not a date", "Forecasted_Demand": "7", "PRODUCT_CARD_ID": "3", "PRODUCT_NAME": "Pump C"},
    ],
    "forecast_insights": [
        {"Month": "2024-03", "PRODUCT_CARD_ID": "1", "PRODUCT_NAME": "Pump A", "insight": "Demand rising"},
        {"Month": "2024-04", "PRODUCT_CARD_ID": "2", "PRODUCT_NAME": "Pump B", "insight": "Flat"},
        {"Month": "2024-04", "PRODUCT_CARD_ID": "1", "PRODUCT_NAME": "Pump A", "insight": "Cooling"},
    ],
    "sales": [
        _sales_row("1", "100", "Caguas", "Pumps", "1/31/2018 22:56", "Standard Class", "East", "Pump A", "0.1", "1"),
        _sales_row("2", "50", "Chicago", "Valves", "12/15/2017 10:00", "First Class", "West", "Valve X", "0.2", "0"),
        _sales_row("3", "25", "Caguas", "Pumps", "1/2/2018 08:15", "Standard Class", "East", "Pump B", "0.0", "1"),
        _sales_row("4", "10", "", "Pumps", "garbage", "Same Day", "West", "Pump A", "", "0"),
    ],
    "stock_levels": [
        {"SKU_No": "A1", "Stock_On_Hand": "100", "In_Transit": "10", "Lead_Time_Days": "5"},
        {"SKU_No": "A2", "Stock_On_Hand": "50", "In_Transit": "", "Lead_Time_Days": "7.5"},
        {"SKU_No": "A1", "Stock_On_Hand": "x", "In_Transit": "5", "Lead_Time_Days": "3"},
    ],
    "alerts": [
        {"SKU_No": "A1", "Available": "5", "Reorder_Point": "10", "Supplier": "Acme"},
        {"SKU_No": "A2", "Available": "20", "Reorder_Point": "10", "Supplier": "Beta"},
        {"SKU_No": "A3", "Available": "1", "Reorder_Point": "3", "Supplier": "Acme"},
        {"SKU_No": "A4", "Available": "0", "Reorder_Point": "2", "Supplier": "Beta"},
    ],
    "schedule": [{"Scheduled_Quantity": "40"}, {"Scheduled_Quantity": "60"}],
    "bom": [{"Component": "Impeller", "Qty": "2"}],
    "mrp_plan": [{"SKU_No": "A1", "Net_Requirement": "30"}],
    "production_orders": [{"PO": "PO1", "Status": "Open"}],
    "station_schedule": [
        {"time": "08:00", "station": "S1", "operator": "Op A", "product_model": "M1", "product_name": "Pump A",
         "scheduled_date": "01-01-2018", "po_number": "PO1", "unit": "10"},
        {"time": "09:00", "station": "S2", "operator": "Op B", "product_model": "M2", "product_name": "Pump B",
         "scheduled_date": "01-01-2018", "po_number": "PO2", "unit": "5"},
        {"time": "10:00", "station": "S1", "operator": "Op A", "product_model": "M1", "product_name": "Pump A",
         "scheduled_date": "02-01-2018", "po_number": "PO3", "unit": "7"},
    ],
    "procurement": [
        {"SKU_ID": "SKU1", "recommendation": "Reorder"},
        {"SKU_ID": "SKU1", "recommendation": "Expedite"},
        {"SKU_ID": "SKU2", "recommendation": "Hold"},
    ],
    "attendance": [
        {"Date": "2018-01-02", "Operator_ID": "OP2", "Operator_Name": "Bea", "Present": "Yes", "Shift": "Night"},
        {"Date": "2018-01-01", "Operator_ID": "OP1", "Operator_Name": "Al", "Present": "No", "Shift": ""},
        {"Date": "2018-01-01", "Operator_ID": "OP2", "Operator_Name": "Bea", "Present": "No", "Shift": "Day"},
        {"Date": "unknown", "Operator_ID": "OP3", "Operator_Name": "Cy", "Present": "Yes", "Shift": "Day"},
    ],
    "leave_requests": [
        {"from_date": "2018-01-10", "to_date": "2018-01-12", "operator_id": "OP1", "operator_name": "Al",
         "reason": "Sick", "status": "Approved"},
        {"from_date": "2018-02-03", "to_date": "2018-02-04", "operator_id": "OP2", "operator_name": "Bea",
         "reason": "Personal", "status": "Pending"},
    ],
    "operator_insights": [
        {"operator_id": "OP2", "ai_insight": "Reliable"},
        {"operator_id": "OP1", "ai_insight": "Often absent"},
        {"operator_id": "", "ai_insight": "orphan"},
        {"operator_id": "OP1", "ai_insight": ""},
    ],
    "suppliers": [
        {"Supplier_Name": "Acme Corp", "SKU_No": "SKU1", "Lead_Time_Days": "4.5", "Fulfillment_Rate": "92.5%",
         "OTD_Percentage": "88%", "Late_Deliveries": "3", "Total_Orders": "25", "Quality_Score": "4.2"},
        {"Supplier_Name": "Beta Ltd", "SKU_No": "SKU2", "Lead_Time_Days": "", "Fulfillment_Rate": "n/a",
         "OTD_Percentage": "90%", "Late_Deliveries": "1", "Total_Orders": "10", "Quality_Score": "3.9"},
    ],
    "alternate_suppliers": [
        {"sku_id": "SKU1", "supplier_name": "Gamma", "otd_percentage": "95%", "quality_score": "4.5",
         "email": "g@example.com", "location": "Austin"},
        {"sku_id": "sku1", "supplier_name": "Lowercase", "otd_percentage": "80%", "quality_score": "3.0",
         "email": "l@example.com", "location": "Reno"},
        {"sku_id": "SKU1", "supplier_name": "", "otd_percentage": "70%", "quality_score": "2.0",
         "email": "", "location": ""},
        {"sku_id": "SKU2", "supplier_name": "Delta", "otd_percentage": "91%", "quality_score": "4.0",
         "email": "d@example.com", "location": "Boise"},
    ],
    "supplier_insights": [
        {"sku_id": "sku1", "ai_supplier_insight": "Consider Gamma as backup"},
        {"sku_id": "SKU9", "ai_supplier_insight": "Orphan SKU insight"},
    ],
    "monthly_insights": [{"Month": "2018-01", "insight": "Strong January"}],
    "quarterly_insights": [{"Quarter": "2018-Q1", "Region": "East", "insight": "East leads"}],
    "yearly_insights": [{"Year": "2017", "Region": "West", "insight": "West grew"}],
}


@pytest.fixture
def ctx() -> DataContext:
    return DataContext.from_records(SAMPLE_TABLES)


@pytest.fixture
def empty_ctx() -> DataContext:
    return DataContext.from_records({})


@pytest.fixture
def client(ctx):
    app = create_app(settings=Settings(), context=ctx)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def empty_client(empty_ctx):
    app = create_app(settings=Settings(), context=empty_ctx)
    with TestClient(app) as c:
        yield c
