"""
Streamlit admin console for ParkDesk.
"""

from __future__ import annotations
