from .client_config import ChatClientConfig, SystemMarkers

__all__ = ["ChatClientConfig", "SystemMarkers"]
