# Simulation module - world loop owning the backend and the vehicles
# May import from all other vehsim modules

from .world import World, load_world_from_config
