"""MSA Trigger - acquisition tracking and transfer for mass spectrometer runs.

Invoked once per RAW file written by the instrument. Tracks which files of a
sequence have arrived and, once the sequence is complete, copies the sequence
directory to the configured output root and writes a completion marker.
"""

__version__ = "2.0.0"
__app_name__ = "MassSpecTrigger"
