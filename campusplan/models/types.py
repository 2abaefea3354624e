from enum import Enum

# Member order is the canonical tie-break order for mode selection.

class Redundancy(Enum):
    N = "N"
    N_PLUS_1 = "N+1"
    TWO_N = "2N"

class CoolingType(Enum):
    AIR_COOLED = "Air-Cooled"
    DLC = "DLC"
    HYBRID = "Hybrid"

class Containment(Enum):
    NONE = "None"
    HOT_AISLE = "Hot Aisle"
    COLD_AISLE = "Cold Aisle"
    FULL_ENCLOSURE = "Full Enclosure"

class ScopeLevel(Enum):
    CAMPUS = "campus"
    ZONE = "zone"
    HALL = "hall"
