from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, JSON, DateTime

from uhc import app, db
from uhc.socketio_handlers.exceptions import MissingConfiguration
from uhc.socketio_handlers.world_surface import Location

DEFAULT_SHRINK_START_MINUTES = 10
DEFAULT_SHRINK_DURATION_MINUTES = 5


class MatchSetting(db.Model):
    __tablename__ = 'match_settings'

    id = Column(Integer, primary_key=True)
    key = Column(String(128), nullable=False, unique=True)
    value = Column(JSON)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, key, value):
        self.key = key
        self.value = value

    def create(self):
        db.session.add(self)
        db.session.commit()
        return self

    def read(self):
        return {
            'key': self.key,
            'value': self.value,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None
        }

    def update(self, value):
        self.value = value
        db.session.commit()
        return self

    @staticmethod
    def get_value(key, default=None):
        setting = MatchSetting.query.filter_by(key=key).first()
        if setting is None or setting.value is None:
            return default
        return setting.value

    @staticmethod
    def put(key, value):
        setting = MatchSetting.query.filter_by(key=key).first()
        if setting:
            return setting.update(value)
        return MatchSetting(key, value).create()


@dataclass
class BorderSettings:
    world: Optional[str] = None
    start_size: Optional[float] = None
    end_size: Optional[float] = None
    center_x: Optional[float] = None
    center_z: Optional[float] = None
    shrink_start_minutes: int = DEFAULT_SHRINK_START_MINUTES
    shrink_duration_minutes: int = DEFAULT_SHRINK_DURATION_MINUTES


class ConfigStore:
    """Persisted arena, lobby and border settings."""

    LOCATION_KINDS = ('arena', 'lobby')

    def __init__(self, flask_app=None):
        self.app = flask_app or app

    def _check_kind(self, kind):
        if kind not in self.LOCATION_KINDS:
            raise ValueError(f"Unknown location kind: {kind}")

    def get_location(self, kind: str) -> Location:
        """Raises MissingConfiguration when the location was never set."""
        self._check_kind(kind)
        with self.app.app_context():
            raw = MatchSetting.get_value(f"{kind}.location")
        if not raw:
            raise MissingConfiguration(f"{kind} location")
        return Location.from_payload(raw)

    def set_location(self, kind: str, location: Location) -> None:
        self._check_kind(kind)
        with self.app.app_context():
            MatchSetting.put(f"{kind}.location", location.to_payload())

    def get_border(self) -> BorderSettings:
        with self.app.app_context():
            return BorderSettings(
                world=MatchSetting.get_value('border.world'),
                start_size=MatchSetting.get_value('border.start-size'),
                end_size=MatchSetting.get_value('border.end-size'),
                center_x=MatchSetting.get_value('border.center.x'),
                center_z=MatchSetting.get_value('border.center.z'),
                shrink_start_minutes=int(MatchSetting.get_value(
                    'border.shrink-start-minutes', DEFAULT_SHRINK_START_MINUTES)),
                shrink_duration_minutes=int(MatchSetting.get_value(
                    'border.shrink-duration-minutes', DEFAULT_SHRINK_DURATION_MINUTES)),
            )

    def set_border(self, start_size: float, end_size: float, center_x: float, center_z: float, world: str) -> None:
        with self.app.app_context():
            MatchSetting.put('border.start-size', start_size)
            MatchSetting.put('border.end-size', end_size)
            MatchSetting.put('border.center.x', center_x)
            MatchSetting.put('border.center.z', center_z)
            MatchSetting.put('border.world', world)

    def set_shrink_timing(self, start_minutes: int, duration_minutes: int) -> None:
        with self.app.app_context():
            MatchSetting.put('border.shrink-start-minutes', int(start_minutes))
            MatchSetting.put('border.shrink-duration-minutes', int(duration_minutes))

    def snapshot(self):
        with self.app.app_context():
            return {setting.key: setting.value for setting in MatchSetting.query.order_by(MatchSetting.key).all()}


def initMatchSettings():
    with app.app_context():
        db.create_all()
