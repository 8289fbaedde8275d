"""GPS verification service."""
from dataclasses import dataclass
from typing import Dict, Optional
import math
import time

from checkin.services.errors import LocationUnavailableError

EARTH_RADIUS_METERS = 6371000
DEFAULT_ALLOWED_RADIUS = 100  # meters

@dataclass
class LocationSample:
    """A single position fix reported by the student's device."""
    latitude: float
    longitude: float
    accuracy: float = 0.0
    timestamp: Optional[int] = None  # ms since epoch
    
    @classmethod
    def from_dict(cls, data: Dict) -> 'LocationSample':
        """Build a sample from a request body."""
        if not data or data.get('latitude') is None or data.get('longitude') is None:
            raise LocationUnavailableError("Location is required to check in")
        
        try:
            latitude = float(data['latitude'])
            longitude = float(data['longitude'])
            accuracy = float(data.get('accuracy') or 0)
        except (TypeError, ValueError):
            raise LocationUnavailableError("Location coordinates must be numbers")
        
        if math.isnan(latitude) or math.isnan(longitude):
            raise LocationUnavailableError("Location coordinates must be numbers")
        
        timestamp = data.get('timestamp')
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        
        return cls(
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            timestamp=timestamp
        )

class GPSService:
    """Service for GPS and location verification."""
    
    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate distance between two GPS points in meters."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)
        
        a = (math.sin(delta_lat/2) ** 2 + 
             math.cos(lat1_rad) * math.cos(lat2_rad) * 
             math.sin(delta_lon/2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))
        
        return EARTH_RADIUS_METERS * c
    
    @staticmethod
    def is_within_radius(
        user_lat: float,
        user_lon: float,
        target_lat: float,
        target_lon: float,
        radius_meters: float
    ) -> bool:
        """Check whether a point lies inside a circle; the boundary counts as inside."""
        distance = GPSService.calculate_distance(user_lat, user_lon, target_lat, target_lon)
        return distance <= radius_meters
    
    @staticmethod
    def verify_location(
        sample: LocationSample,
        latitude: float,
        longitude: float,
        allowed_radius: Optional[float] = None
    ) -> Dict:
        """Verify if the student is within the session's geofence."""
        if allowed_radius is None:
            allowed_radius = DEFAULT_ALLOWED_RADIUS
        
        distance = GPSService.calculate_distance(
            sample.latitude, sample.longitude,
            latitude, longitude
        )
        
        return {
            'is_inside': distance <= allowed_radius,
            'distance': distance,
            'allowed_radius': allowed_radius,
            'center': {
                'latitude': latitude,
                'longitude': longitude
            }
        }
