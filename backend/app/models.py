from app import db
from flask_login import UserMixin
from datetime import date, timedelta
import uuid

LEVELS = ('Novice', 'Beginner', 'Intermediate', 'Advanced', 'Expert')

KNOWN_LOCATIONS = (
    'Branford Bridge Club',
    'Guilford Community Center',
    'Madison Senior Center',
    'North Haven Library',
    'Online (BBO)',
)


def _time_slots(start_hour=9, end_hour=20, step_min=15):
    slots = []
    minutes = start_hour * 60
    while minutes <= end_hour * 60:
        slots.append(f'{minutes // 60:02d}:{minutes % 60:02d}')
        minutes += step_min
    return tuple(slots)


TIME_SLOTS = _time_slots()


class GateVisitor(UserMixin):
    """Session-scoped holder of the shared-password grant.

    Nothing is persisted: the id lives only in the signed session cookie, so
    the grant ends with the session or an explicit logout.
    """
    PREFIX = 'visitor:'

    def __init__(self, token=None):
        self.token = token or uuid.uuid4().hex

    def get_id(self):
        return f'{self.PREFIX}{self.token}'

    @classmethod
    def from_session_id(cls, session_id):
        if not session_id or not session_id.startswith(cls.PREFIX):
            return None
        token = session_id[len(cls.PREFIX):]
        return cls(token) if token else None


def new_listing_id():
    return str(uuid.uuid4())


class Listing(db.Model):
    __tablename__ = 'partner_listings'
    id = db.Column(db.String(36), primary_key=True, default=new_listing_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    # Kept as text (YYYY-MM-DD / HH:MM); rows may carry values that don't parse
    date = db.Column(db.String(10), nullable=False, index=True)
    time = db.Column(db.String(5), nullable=False)
    level = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    event_link = db.Column(db.String(2048), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'location': self.location,
            'date': self.date,
            'time': self.time,
            'level': self.level,
            'notes': self.notes,
            'event_link': self.event_link,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


def seed_listings(today=None):
    """Insert a handful of upcoming listings for local development."""
    today = today or date.today()
    samples = [
        ('Sarah Mitchell', 'sarah@example.com', 'Branford Bridge Club', 1, '10:00', 'Advanced',
         'Looking for a partner for the Tuesday pairs game.'),
        ('James Chen', 'james@example.com', 'Guilford Community Center', 2, '13:30', 'Intermediate',
         'Happy to play 2/1.'),
        ('Michael Thompson', 'michael@example.com', 'Online (BBO)', 3, '19:00', 'Beginner', None),
    ]
    for name, email, location, offset, start, level, notes in samples:
        db.session.add(Listing(
            name=name,
            email=email,
            location=location,
            date=(today + timedelta(days=offset)).isoformat(),
            time=start,
            level=level,
            notes=notes,
        ))
    db.session.commit()
    return len(samples)
