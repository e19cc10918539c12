"""
XR Training Core

Training-content model, relationship graph and quiz submission engine
for the XR training asset repository.
"""

__version__ = "1.0.0"
