"""
Schema module initialization.
Exports all request schema classes from submodules for convenient imports.
"""
from .auth import *
from .team import *
from .project import *
from .task import *
from .todo import *
from .message import *
