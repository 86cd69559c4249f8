import logging

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

#-----------------------------------------------------------------------------

DEFAULT_TIMEZONE            = "UTC"
DEFAULT_SLEEP_BOUNDARY_HOUR = 15

#-----------------------------------------------------------------------------

class DigestConfig:
    def __init__(
        self,
        timezone            : str = DEFAULT_TIMEZONE,
        sleep_boundary_hour : int = DEFAULT_SLEEP_BOUNDARY_HOUR,
        zero_fill_average   : bool = False,
        export_file         : str = ""
    ):
        self.timezone_name = timezone.strip() if timezone else DEFAULT_TIMEZONE

        try:
            self.tz: tzinfo = ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            logging.warning(f"Unknown timezone '{self.timezone_name}', falling back to {DEFAULT_TIMEZONE}")
            self.timezone_name = DEFAULT_TIMEZONE
            self.tz = ZoneInfo(DEFAULT_TIMEZONE)

        if 0 <= sleep_boundary_hour <= 23:
            self.sleep_boundary_hour = sleep_boundary_hour
        else:
            logging.warning(f"Invalid sleep boundary hour {sleep_boundary_hour}, using {DEFAULT_SLEEP_BOUNDARY_HOUR}")
            self.sleep_boundary_hour = DEFAULT_SLEEP_BOUNDARY_HOUR

        self.zero_fill_average  = zero_fill_average
        self.export_file        = export_file.strip() if export_file else ""


    def print(self):
        print(f"timezone        : {self.timezone_name}")
        print(f"sleep boundary  : {self.sleep_boundary_hour:02d}:00")
        print(f"zero fill avg   : {self.zero_fill_average}")
        if self.export_file:
            print(f"export          : {self.export_file}")

#-----------------------------------------------------------------------------
