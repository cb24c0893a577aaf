"""
Garage core schema definitions

Any entity schema has a base name and any of the following extended names:
 * ``Creation`` to create a new instance of that schema
 * ``Patch`` to modify an existing instance of that schema

A creation schema requires exactly its fields, nothing more and nothing
less. A patch has optional fields only. Any field of the original model
that should not be affected by some proposed change can therefore just be
omitted with a patch. Unknown fields are rejected by both of them.

This package also contains the ``config`` module, but it's not
exported by default, since it's currently only used internally.
"""

from .bases import *
from .errors import *
