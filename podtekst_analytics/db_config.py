"""Database URL resolution"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import make_url

from podtekst_analytics.config import settings, Settings

@dataclass
class DatabaseCredentials:
    """Database URL plus a password kept out of the URL in configuration."""
    url: str
    password: Optional[str] = None

    def to_connection_string(self) -> str:
        """Generate database connection string, injecting the password when the URL has none."""
        url = make_url(self.url)
        if self.password and url.password is None and not url.drivername.startswith('sqlite'):
            url = url.set(password=self.password)
        return url.render_as_string(hide_password=False)

    @classmethod
    def from_settings(cls, settings_obj: Settings = settings) -> 'DatabaseCredentials':
        if not settings_obj.DATABASE_URL:
            raise ValueError("DATABASE_URL setting is required and not found.")
        return cls(url=settings_obj.DATABASE_URL, password=settings_obj.DB_PASSWORD)

class DatabaseManager:
    """Manages database connection string generation."""

    @staticmethod
    def initialize_from_env(settings_obj: Settings = settings) -> str:
        """
        Initialize database connection string from settings.
        Returns: Database connection string
        Raises: ValueError if DATABASE_URL is missing
        """
        credentials = DatabaseCredentials.from_settings(settings_obj)
        return credentials.to_connection_string()
