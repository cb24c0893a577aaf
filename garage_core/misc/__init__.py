"""
Garage core domain library implementing the business rules for cars and garages
"""
