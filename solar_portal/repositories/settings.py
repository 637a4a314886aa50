from solar_portal.models import Settings, SettingsUpdate
from solar_portal.repositories.base import coerce_payload
from solar_portal.storage.cache import RepositoryCache


class SettingsRepository:
    collection = "settings"

    def __init__(self, cache: RepositoryCache):
        self.cache = cache

    def get(self) -> Settings:
        return self.cache.get(self.collection) or Settings()

    def update(self, updates: SettingsUpdate | dict) -> Settings:
        changes = coerce_payload(SettingsUpdate, updates).model_dump(exclude_unset=True, exclude_none=True)
        settings = self.get().model_copy(update=changes)
        self.cache.put(self.collection, settings)
        return settings

    def set_theme(self, theme: str) -> Settings:
        return self.update({"theme": theme})

    def toggle_theme(self) -> Settings:
        return self.set_theme("dark" if self.get().theme == "light" else "light")
