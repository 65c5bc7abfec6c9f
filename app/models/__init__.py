# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from .user import User
from .travel_session import TravelSession
from .emergency_contact import EmergencyContact
from .alert import Alert, AlertDelivery
