#Marks routing as a package.
#Re-exports the geo primitives (Coordinate, distance_km) and the radius geofence
#so other modules import from routing without knowing internal file names.
#No business logic.

from .geo import Coordinate, InvalidCoordinate, coordinate_or_none, distance_km
from .geofence import GeofenceCandidate, geofence_candidates

__all__ = [
           "Coordinate",
           "InvalidCoordinate",
             "coordinate_or_none",
             "distance_km",
             "GeofenceCandidate",
             "geofence_candidates",
             ]
