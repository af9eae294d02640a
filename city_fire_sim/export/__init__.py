"""I/O package for the city fire simulation."""

from .csv_writer import CSVWriter, HistoryWriter
from .visualizer import Visualizer
from .reporter import Reporter

__all__ = ['CSVWriter', 'HistoryWriter', 'Visualizer', 'Reporter']
