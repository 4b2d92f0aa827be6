
ENTRY_NOT_FOUND = {"message": "Queue entry not found"}

class TablyAPIError(Exception): pass

class ValidationError(TablyAPIError):

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self):
        body = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body

class InvalidTransitionError(TablyAPIError):

    def __init__(self, entry_id, status: str, event: str):
        super().__init__(f"Cannot {event} an entry that is {status}")
        self.entry_id = entry_id
        self.status = status
        self.event = event

class DatabaseInsertError(TablyAPIError): pass

class AuthenticationError(TablyAPIError): pass
