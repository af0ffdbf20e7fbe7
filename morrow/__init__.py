"""
Morrow - the decision-making core of the Morrow.AI marketing assistant.
Intent resolution, guarded action dispatch and response normalization.
"""
__version__ = "0.3.0"
