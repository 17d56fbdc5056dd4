from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import TransactionTestCase
from rest_framework.authtoken.models import Token

from common.testing import create_gig, create_order, create_user_with_role
from messaging import services
from messaging.routing import websocket_urlpatterns
from orders import lifecycle
from orders.models import Order
from profiles.models import Profile
from user_auth_app.authentication import TokenAuthMiddleware

application = TokenAuthMiddleware(URLRouter(websocket_urlpatterns))


class MessagingConsumerTests(TransactionTestCase):
    def setUp(self):
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        self.chris = create_user_with_role("chris", Profile.Role.CLIENT)
        self.conversation, _ = services.get_or_create_direct_conversation(self.fred, self.carla)
        self.order = create_order(self.carla, create_gig(self.fred))
        self.tokens = {u.id: Token.objects.create(user=u).key for u in (self.fred, self.carla, self.chris)}

    async def _connect(self, user):
        communicator = WebsocketCommunicator(application, f"/ws/messages/?token={self.tokens[user.id]}")
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        return communicator

    async def test_rejects_missing_token(self):
        communicator = WebsocketCommunicator(application, "/ws/messages/")
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_rejects_unknown_token(self):
        communicator = WebsocketCommunicator(application, "/ws/messages/?token=nope")
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_new_message_reaches_recipient_socket(self):
        fred = await self._connect(self.fred)
        await database_sync_to_async(services.send_message)(self.conversation, self.carla, "Hello Fred")

        frame = await fred.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "newMessage")
        self.assertEqual(frame["data"]["content"], "Hello Fred")
        self.assertEqual(frame["data"]["conversation"], self.conversation.id)
        await fred.disconnect()

    async def test_typing_is_relayed_to_the_other_side_only(self):
        fred = await self._connect(self.fred)
        carla = await self._connect(self.carla)
        for socket in (fred, carla):
            await socket.send_json_to({"event": "joinConversation", "data": {"conversation_id": self.conversation.id}})

        await carla.send_json_to(
            {"event": "typing", "data": {"conversation_id": self.conversation.id, "is_typing": True}}
        )
        frame = await fred.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "userTyping")
        self.assertEqual(frame["data"]["user_id"], self.carla.id)
        self.assertTrue(frame["data"]["is_typing"])
        self.assertTrue(await carla.receive_nothing(timeout=0.2))

        await fred.disconnect()
        await carla.disconnect()

    async def test_outsider_cannot_join_order_room(self):
        chris = await self._connect(self.chris)
        await chris.send_json_to({"event": "joinOrder", "data": {"order_id": self.order.id}})
        frame = await chris.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "error")
        await chris.disconnect()

    async def test_typing_requires_joined_room(self):
        carla = await self._connect(self.carla)
        await carla.send_json_to({"event": "typing", "data": {"order_id": self.order.id}})
        frame = await carla.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "error")
        await carla.disconnect()

    async def test_unknown_event_returns_error(self):
        carla = await self._connect(self.carla)
        await carla.send_json_to({"event": "dance", "data": {}})
        frame = await carla.receive_json_from(timeout=2)
        self.assertEqual(frame, {"event": "error", "data": {"detail": "Unknown event 'dance'."}})
        await carla.disconnect()

    async def test_joined_thread_delivers_each_message_once(self):
        fred = await self._connect(self.fred)
        await fred.send_json_to({"event": "joinConversation", "data": {"conversation_id": self.conversation.id}})
        await database_sync_to_async(services.send_message)(self.conversation, self.carla, "hi")

        frame = await fred.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "newMessage")
        self.assertTrue(await fred.receive_nothing(timeout=0.3))
        await fred.disconnect()

    async def test_messages_read_reaches_the_sender(self):
        await database_sync_to_async(services.send_message)(self.conversation, self.carla, "seen?")
        carla = await self._connect(self.carla)
        await carla.send_json_to({"event": "joinConversation", "data": {"conversation_id": self.conversation.id}})
        self.assertTrue(await carla.receive_nothing(timeout=0.2))

        ids = await database_sync_to_async(services.mark_read)(self.conversation, self.fred)
        frame = await carla.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "messagesRead")
        self.assertEqual(frame["data"]["reader_id"], self.fred.id)
        self.assertEqual(frame["data"]["message_ids"], ids)
        self.assertTrue(await carla.receive_nothing(timeout=0.3))
        await carla.disconnect()

    async def test_order_room_receives_thread_messages_and_updates(self):
        conversation = await database_sync_to_async(services.get_or_create_order_conversation)(self.order)
        fred = await self._connect(self.fred)
        await fred.send_json_to({"event": "joinOrder", "data": {"order_id": self.order.id}})
        self.assertTrue(await fred.receive_nothing(timeout=0.2))

        await database_sync_to_async(services.send_message)(conversation, self.carla, "Any news?")
        frame = await fred.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "newMessage")
        self.assertEqual(frame["data"]["order"], self.order.id)
        self.assertTrue(await fred.receive_nothing(timeout=0.3))

        carla = await self._connect(self.carla)
        await carla.send_json_to({"event": "joinOrder", "data": {"order_id": self.order.id}})
        self.assertTrue(await carla.receive_nothing(timeout=0.2))
        await database_sync_to_async(lifecycle.transition)(self.order, self.fred, Order.Status.ACCEPTED)

        frame = await carla.receive_json_from(timeout=2)
        self.assertEqual(frame["event"], "newMessage")
        self.assertEqual(frame["data"]["message_type"], "order_update")
        self.assertTrue(await carla.receive_nothing(timeout=0.3))

        await fred.disconnect()
        await carla.disconnect()
