"""Data models for letter field extraction."""

from dataclasses import asdict, dataclass

from lettertrack.enums import Urgency

# ExtractionResult attribute -> letter form field it pre-fills
FORM_FIELDS = {
    "date": "date_received",
    "title": "title",
    "sender": "sender_name",
    "recipient": "recipient_name",
    "urgency": "priority",
}


@dataclass(frozen=True)
class ExtractionResult:
    """Best-effort letter metadata deduced from recognized text.

    Every string field is ``""`` when no signal was found. ``urgency`` is
    always set and falls back to ``Urgency.LOW``.
    """

    date: str = ""
    title: str = ""
    sender: str = ""
    recipient: str = ""
    contact: str = ""
    urgency: Urgency = Urgency.LOW

    def to_dict(self) -> dict:
        data = asdict(self)
        data["urgency"] = str(self.urgency)
        return data

    def merge_into(self, form: dict | None) -> dict:
        """
        Overlay extracted values on a form's current values.

        Only fields that came back non-empty overwrite the form; everything
        else keeps its existing or placeholder value. The contact goes to
        ``sender_email`` when it looks like an address, else ``sender_phone``.

        Args:
            form: Current form values (not modified)

        Returns:
            A new dict with the merged values
        """
        merged = dict(form or {})
        for attr, form_field in FORM_FIELDS.items():
            value = getattr(self, attr)
            if value:
                merged[form_field] = str(value)
        if self.contact:
            contact_field = "sender_email" if "@" in self.contact else "sender_phone"
            merged[contact_field] = self.contact
        return merged
