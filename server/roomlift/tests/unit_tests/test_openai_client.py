import base64
from unittest.mock import Mock, patch

from django.test import SimpleTestCase, override_settings

from roomlift.models import AIModel
from roomlift.providers import JobInvocation, OpenAIImageEditAdapter
from roomlift.tests.helpers import make_png_bytes, make_response
from roomlift.utils.exceptions import ProviderError


def _invocation(settings=None):
    ai_model = Mock(
        id=1,
        model_identifier="gpt-image-1",
        provider_kind=AIModel.PROVIDER_KIND_SYNC,
        settings=settings or {},
    )
    return JobInvocation(
        image_id=7,
        ai_model=ai_model,
        prompt="Brighten the room",
        source=make_png_bytes(),
        mime_type="image/png",
    )


@override_settings(OPENAI_API_URL="https://api.openai.com/v1")
class OpenAIImageEditAdapterTest(SimpleTestCase):
    def test_build_payload_forwards_known_settings_only(self):
        adapter = OpenAIImageEditAdapter(api_key="sk-test")
        payload = adapter.build_payload(
            _invocation({"quality": "high", "size": "1536x1024", "seed": 3})
        )

        self.assertEqual(payload["model"], "gpt-image-1")
        self.assertEqual(payload["prompt"], "Brighten the room")
        self.assertEqual(payload["quality"], "high")
        self.assertEqual(payload["size"], "1536x1024")
        self.assertNotIn("seed", payload)

    @patch("roomlift.providers.openai_client.requests.post")
    def test_generate_decodes_base64_result(self, mock_post):
        result_bytes = make_png_bytes(color="blue")
        mock_post.return_value = make_response(
            json_data={"data": [{"b64_json": base64.b64encode(result_bytes).decode()}]}
        )

        adapter = OpenAIImageEditAdapter(api_key="sk-test")
        result = adapter.generate(_invocation())

        self.assertEqual(result.content, result_bytes)
        self.assertEqual(result.metadata["delivery"], "inline")
        self.assertEqual(mock_post.call_count, 1)
        called_url = mock_post.call_args[0][0]
        self.assertEqual(called_url, "https://api.openai.com/v1/images/edits")
        self.assertEqual(mock_post.call_args[1]["headers"]["Authorization"], "Bearer sk-test")
        filename, content, mime_type = mock_post.call_args[1]["files"]["image"]
        self.assertEqual(filename, "source.png")
        self.assertEqual(mime_type, "image/png")

    @patch("roomlift.providers.openai_client.requests.get")
    @patch("roomlift.providers.openai_client.requests.post")
    def test_generate_falls_back_to_result_url(self, mock_post, mock_get):
        mock_post.return_value = make_response(
            json_data={"data": [{"url": "https://oaidalle.example.com/result.png"}]}
        )
        mock_get.return_value = make_response(content=b"png-bytes")

        result = OpenAIImageEditAdapter(api_key="sk-test").generate(_invocation())

        self.assertEqual(result.content, b"png-bytes")
        mock_get.assert_called_once()

    @patch("roomlift.providers.openai_client.requests.post")
    def test_generate_raises_with_status_and_body_on_error(self, mock_post):
        mock_post.return_value = make_response(
            status_code=400,
            json_data={"error": {"message": "Invalid image"}},
            text='{"error": {"message": "Invalid image"}}',
        )

        with self.assertRaises(ProviderError) as ctx:
            OpenAIImageEditAdapter(api_key="sk-test").generate(_invocation())

        self.assertEqual(ctx.exception.provider_status, 400)
        self.assertIn("Invalid image", ctx.exception.body)
        self.assertIn("400", str(ctx.exception))

    @patch("roomlift.providers.openai_client.requests.post")
    def test_generate_raises_when_no_image_returned(self, mock_post):
        mock_post.return_value = make_response(json_data={"data": []}, text='{"data": []}')

        with self.assertRaises(ProviderError):
            OpenAIImageEditAdapter(api_key="sk-test").generate(_invocation())

    @override_settings(OPENAI_API_KEY="")
    @patch("roomlift.providers.openai_client.requests.post")
    def test_generate_requires_api_key(self, mock_post):
        with self.assertRaises(ProviderError):
            OpenAIImageEditAdapter().generate(_invocation())

        mock_post.assert_not_called()
