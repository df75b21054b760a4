from app.models.equipment import Equipment  # noqa: F401
