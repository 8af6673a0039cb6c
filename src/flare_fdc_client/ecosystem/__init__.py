from .flare import Flare
from .settings_models import EcosystemSettingsModel

__all__ = ["EcosystemSettingsModel", "Flare"]
