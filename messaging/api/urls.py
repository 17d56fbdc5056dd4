from django.urls import path
from .views import (
    ConversationListCreateAPIView,
    ConversationMessagesAPIView,
    ConversationReadAPIView,
    ConversationStatusAPIView,
    UnreadCountAPIView,
)

urlpatterns = [
    path("conversations/", ConversationListCreateAPIView.as_view(), name="conversation-list"),
    path("conversations/<int:pk>/messages/", ConversationMessagesAPIView.as_view(), name="conversation-messages"),
    path("conversations/<int:pk>/read/", ConversationReadAPIView.as_view(), name="conversation-read"),
    path("conversations/<int:pk>/status/", ConversationStatusAPIView.as_view(), name="conversation-status"),
    path("unread-count/", UnreadCountAPIView.as_view(), name="unread-count"),
]
