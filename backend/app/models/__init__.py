from app.models.form import Form
from app.models.form_response import FormResponse

__all__ = [
    "Form",
    "FormResponse",
]
