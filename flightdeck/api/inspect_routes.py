"""
Inspect Routes — Browse Databases, Tables and Rows

- GET /api/influxdb/inspect/database               — databases with links
- GET /api/influxdb/inspect/database/{db}          — table names
- GET /api/influxdb/inspect/database/{db}/{table}  — last 10 rows
"""

from fastapi import APIRouter, Depends, HTTPException, status

from flightdeck.influx import GatewayError, InfluxGateway

from . import services
from .deps import get_gateway, raise_http


router = APIRouter(prefix="/api/influxdb/inspect", tags=["Inspect"])

BASE_PATH = "/api/influxdb/inspect/database"


@router.get("/database")
def list_databases(gateway: InfluxGateway = Depends(get_gateway)):
    try:
        names = gateway.list_databases().unwrap()
    except GatewayError as e:
        raise_http(e)
    return {
        "success": True,
        "databases": [{"name": name, "link": f"{BASE_PATH}/{name}"} for name in names],
    }


@router.get("/database/{db}")
def list_tables(db: str, gateway: InfluxGateway = Depends(get_gateway)):
    try:
        tables = services.list_tables(gateway, db)
    except GatewayError as e:
        raise_http(e)
    return {
        "success": True,
        "database": db,
        "tables": [{"name": t, "link": f"{BASE_PATH}/{db}/{t}"} for t in tables],
    }


@router.get("/database/{db}/{table}")
def table_rows(db: str, table: str, gateway: InfluxGateway = Depends(get_gateway)):
    try:
        rows = services.table_rows(gateway, db, table)
    except services.InvalidIdentifier as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GatewayError as e:
        raise_http(e)
    return {"success": True, "database": db, "table": table, "rows": rows}
