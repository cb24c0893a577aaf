"""
Garage core persistence layer: database bindings, models and the entity store
"""
