from .client import *
from .cluster import *
from .device import *
from .secret_reference import *
from .user import *
