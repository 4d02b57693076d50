"""EPICS Channel Access Module"""

from app.epics.base import ChannelClient
from app.epics.ca_client import ChannelAccessClient
from app.epics.mock_client import MockChannelClient
from app.epics.channel_registry import ChannelRegistry, ChannelHandle

__all__ = [
    'ChannelClient',
    'ChannelAccessClient',
    'MockChannelClient',
    'ChannelRegistry',
    'ChannelHandle',
]
