from abc import ABC, abstractmethod
from typing import Dict, Any


class SiteInfoPort(ABC):
    @abstractmethod
    def get_site_info(self) -> Dict[str, Any]:
        """Return a serializable mapping describing the service for GET /."""
        pass

    @abstractmethod
    def get_endpoints(self) -> Dict[str, str]:
        """Return the public endpoint map (name -> 'METHOD /path')."""
        pass
