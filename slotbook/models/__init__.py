"""Sheet row models."""
from slotbook.models.slot import Slot, SlotColumns
from slotbook.models.signup import Signup, SignupColumns

__all__ = ["Slot", "SlotColumns", "Signup", "SignupColumns"]
