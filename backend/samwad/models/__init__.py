from samwad.models.session_record import SessionRecord
from samwad.models.grievance import Grievance

__all__ = ["SessionRecord", "Grievance"]
