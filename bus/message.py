"""
BusMessage: Data structure representing a sample carried by a bus topic.
"""

from dataclasses import dataclass


@dataclass
class BusMessage:
    """
    Represents a single sample written to a channel or the export bus.

    Attributes:
        id (str): Unique identifier for the sample.
        topic (str): The topic of the sample (e.g., 'inferred-scene', 'CarData').
        sender (str): Name of the writing component (e.g., 'camera', 'mode_arbiter').
        payload (object): The record carried by the sample.
        ts (float): Timestamp (in seconds) when the sample was written.
    """
    id: str
    topic: str
    sender: str
    payload: object
    ts: float
