from .enums import SlipStatus, SlipType, UserRole  # noqa: F401
from .client import Client, ClientAccountingContact, ClientContact  # noqa: F401
from .supplier import Supplier  # noqa: F401
from .vehicle import Vehicle  # noqa: F401
from .users import User  # noqa: F401
from .app_setting import AppSetting  # noqa: F401
from .slip_number_config import SlipNumberConfig  # noqa: F401
from .slip import FreightSlip, TransportSlip  # noqa: F401
