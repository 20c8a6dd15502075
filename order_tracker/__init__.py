"""
                Sweet Karam Order Tracker

Food-ordering backend: customers place orders, the admin dashboard moves
them through Pending -> Out for Delivery -> Delivered, and every connected
viewer is kept in sync over a WebSocket.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
