# backend/services/errors.py
# Domain exceptions raised by the service layer.
# main.py maps them to HTTP responses of the form {"error": message}.


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotFoundError(ServiceError):
    status_code = 404


class PermissionDeniedError(ServiceError):
    status_code = 403


class BusinessRuleError(ServiceError):
    status_code = 400


class InvalidTransitionError(BusinessRuleError):
    pass


class InsufficientStockError(BusinessRuleError):
    """Raised when one or more materials cannot cover the required quantities.

    ``materials`` lists every offending material, not only the first one,
    so the caller can fix the whole request in one go.
    """

    def __init__(self, materials: list):
        self.materials = materials
        names = ", ".join(m["name"] for m in materials)
        super().__init__(f"Estoque insuficiente para: {names}")

    def to_dict(self) -> dict:
        return {"error": self.message, "materials": self.materials}
