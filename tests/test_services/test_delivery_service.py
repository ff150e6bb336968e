import json
import unittest

import httpx

from carbooking.services.delivery_service import DeliveryError, MessageDelivery


class TestMessageDelivery(unittest.TestCase):

    def setUp(self):
        self.requests = []
        self.status_code = 200

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(self.status_code, json={})

        self.http = httpx.Client(transport=httpx.MockTransport(handler))
        self.delivery = MessageDelivery("line-token", "tg-token", "-100200", http=self.http)

    def test_line_push(self):
        self.delivery.deliver({"channel": "line", "recipient": "U100", "text": "hello"})

        request = self.requests[0]
        self.assertEqual(str(request.url), "https://api.line.me/v2/bot/message/push")
        self.assertEqual(request.headers["Authorization"], "Bearer line-token")
        self.assertEqual(
            json.loads(request.content),
            {"to": "U100", "messages": [{"type": "text", "text": "hello"}]},
        )

    def test_telegram_send(self):
        self.delivery.deliver({"channel": "telegram", "recipient": None, "text": "*new*"})

        request = self.requests[0]
        self.assertEqual(str(request.url), "https://api.telegram.org/bottg-token/sendMessage")
        body = json.loads(request.content)
        self.assertEqual(body["chat_id"], "-100200")
        self.assertEqual(body["parse_mode"], "Markdown")

    def test_http_error_raises(self):
        self.status_code = 500

        with self.assertRaises(httpx.HTTPStatusError):
            self.delivery.deliver({"channel": "line", "recipient": "U100", "text": "hello"})

    def test_unknown_channel(self):
        with self.assertRaises(DeliveryError):
            self.delivery.deliver({"channel": "sms", "recipient": "U100", "text": "hello"})

        self.assertEqual(self.requests, [])

    def test_missing_credentials(self):
        delivery = MessageDelivery(None, None, None, http=self.http)

        with self.assertRaises(DeliveryError):
            delivery.deliver({"channel": "line", "recipient": "U100", "text": "hello"})
        with self.assertRaises(DeliveryError):
            delivery.deliver({"channel": "telegram", "text": "hello"})

    def test_line_without_recipient(self):
        with self.assertRaises(DeliveryError):
            self.delivery.deliver({"channel": "line", "text": "hello"})


if __name__ == "__main__":
    unittest.main()
