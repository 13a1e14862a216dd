class MissingDataError(Exception):
    """Provider document carries no address map; the cycle cannot proceed."""


class DeliveryError(Exception):
    """Notification could not be delivered after all retry attempts."""
