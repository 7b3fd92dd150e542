"""FastAPI dependencies that hand configured service clients to the routes.

Routes never build clients from settings themselves; tests override these.
"""

from lettertrack.config import settings
from lettertrack.services.extraction import FieldExtractor
from lettertrack.services.mail import MailRelay
from lettertrack.services.ocr import RecognitionService


def get_field_extractor() -> FieldExtractor:
    return FieldExtractor(day_first=settings.date_day_first)


def get_recognition_service() -> RecognitionService:
    return RecognitionService()


def get_mail_relay() -> MailRelay:
    return MailRelay()
