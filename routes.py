# routes.py
from fastapi import FastAPI
from controller.matching_controller import matching_router
from controller.position_controller import position_router
from controller.reference_controller import reference_router
from controller.validation_controller import validation_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(validation_router)
    app.include_router(position_router)
    app.include_router(reference_router)
    app.include_router(matching_router)
