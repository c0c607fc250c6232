from .user import User, GENDERS
from .entry import Entry
from .upload import Upload
from .event import Event, CATEGORIES, GENDER_RESTRICTIONS
from .event_participant import EventParticipant
from .event_closed_date import EventClosedDate
