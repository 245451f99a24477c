import json

import azure.functions as func
from loguru import logger

from smartconfig.api import (
    health as health_handler,
    get_setting as get_setting_handler,
    put_setting as put_setting_handler,
)


app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

ERROR_STATUS_CODES = {
    "not_found": 404,
    "ambiguous": 409,
    "invalid": 400,
    "data_source": 502,
}


def _status_code(response: dict) -> int:
    if response.get("status") == "success":
        return 200
    return ERROR_STATUS_CODES.get(response.get("error"), 500)


@app.function_name(name="ping")
@app.route(route="ping", methods=[func.HttpMethod.GET])
async def ping(req: func.HttpRequest) -> func.HttpResponse:
    """Ping endpoint."""
    logger.info("HTTP trigger: ping")
    return func.HttpResponse("pong", status_code=200)


@app.function_name(name="health")
@app.route(route="health", methods=[func.HttpMethod.GET])
async def health(req: func.HttpRequest) -> func.HttpResponse:
    """Health check."""
    logger.info("HTTP trigger: health")

    response = await health_handler(route=req.params.get("route", None))
    if response["status"] == "success":
        return func.HttpResponse(
            json.dumps(response),
            status_code=200
        )

    return func.HttpResponse(
        json.dumps(response),
        status_code=500
    )


@app.function_name(name="get_setting")
@app.route(route="settings/{name}", methods=[func.HttpMethod.GET])
async def get_setting(req: func.HttpRequest) -> func.HttpResponse:
    """Resolve a setting; query parameters are the requested dimensions."""
    name = req.route_params.get("name")
    logger.info("HTTP trigger: get_setting {}", name)

    response = await get_setting_handler(
        name=name,
        dimensions=dict(req.params),
    )

    return func.HttpResponse(
        json.dumps(response),
        status_code=_status_code(response)
    )


@app.function_name(name="put_setting")
@app.route(route="settings/{name}", methods=[func.HttpMethod.PUT])
async def put_setting(req: func.HttpRequest) -> func.HttpResponse:
    """Write a setting row addressed by its exact dimensions."""
    name = req.route_params.get("name")
    logger.info("HTTP trigger: put_setting {}", name)

    try:
        req_body = req.get_json()
    except ValueError:
        return func.HttpResponse(
            json.dumps({"status": "error", "message": "Invalid JSON body"}),
            status_code=400
        )

    if "value" not in req_body:
        return func.HttpResponse(
            json.dumps({
                "status": "error",
                "message": "Missing required parameters, value is required",
            }),
            status_code=400
        )

    dimensions = req_body.get("dimensions", None) or {}
    if not isinstance(dimensions, dict):
        return func.HttpResponse(
            json.dumps({"status": "error", "message": "dimensions must be an object"}),
            status_code=400
        )

    value = req_body["value"]
    response = await put_setting_handler(
        name=name,
        value=None if value is None else str(value),
        dimensions={str(k): str(v) for k, v in dimensions.items()},
    )

    return func.HttpResponse(
        json.dumps(response),
        status_code=_status_code(response)
    )
