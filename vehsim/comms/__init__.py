# Comms module - topic messaging between the simulation and external nodes

from .client import Client, TopicBroker, NodeInfo
