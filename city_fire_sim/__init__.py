"""City Fire Simulation: arson, fire spread and emergency response on a city grid."""

__version__ = "0.1.0"
