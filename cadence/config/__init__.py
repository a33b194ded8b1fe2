from cadence.config.settings import EngineSettings, settings

__all__ = ["EngineSettings", "settings"]
