from chatrelay.client.catalog import ModelCatalog
from chatrelay.client.session import ChatSession
from chatrelay.client.state import ConversationState, Status, apply_frame

__all__ = ["ChatSession", "ConversationState", "ModelCatalog", "Status", "apply_frame"]
