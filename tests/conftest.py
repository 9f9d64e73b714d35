"""
Pytest configuration and fixtures for Extra Seguro Backend tests.
"""

import base64
import io
import os
from typing import List
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment variables before importing the app
os.environ["TENANT_ID"] = "test-tenant"
os.environ["CLIENT_ID"] = "test-client"
os.environ["CLIENT_SECRET"] = "test-secret"
os.environ["DRIVE_ID"] = "test-drive"
os.environ["FOLDER_PATH"] = "Extra Seguro"
os.environ["ALLOWED_ORIGIN"] = ""

from extra_seguro_backend.configuration import Settings, load_layout
from extra_seguro_backend.main import create_app
from extra_seguro_backend.upload_pipeline import UploadPipeline


class FakeGraph:
    """
    Stand-in for the identity endpoint and the Graph drive API.

    Every request is recorded. The token and upload answers can be switched
    to failures per test.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_status = 200
        self.token_body = {"token_type": "Bearer", "expires_in": 3599, "access_token": "token-123"}
        self.upload_status = 201
        self.upload_error = '{"error":{"code":"accessDenied","message":"Access denied"}}'

    @property
    def uploads(self) -> List[httpx.Request]:
        return [request for request in self.requests if request.method == "PUT"]

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.host == "login.microsoftonline.com"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "login.microsoftonline.com":
            return httpx.Response(self.token_status, json=self.token_body)

        if request.method == "PUT":
            if self.upload_status >= 400:
                return httpx.Response(self.upload_status, text=self.upload_error)
            item_path = request.url.path.rsplit(":/content", 1)[0]
            name = unquote(item_path.rsplit("/", 1)[-1])
            return httpx.Response(
                self.upload_status,
                json={
                    "id": "01ABCDEF",
                    "name": name,
                    "size": len(request.content),
                    "webUrl": f"https://contoso.sharepoint.com/sites/claims/Extra%20Seguro/{name}",
                },
            )

        return httpx.Response(404, json={"error": "unexpected request"})


@pytest.fixture
def settings():
    return Settings(
        tenant_id="test-tenant",
        client_id="test-client",
        client_secret="test-secret",
        drive_id="test-drive",
        folder_path="Extra Seguro",
    )


@pytest.fixture
def layout():
    return load_layout()


@pytest.fixture
def graph():
    return FakeGraph()


@pytest.fixture
def client(settings, layout, graph):
    """Create a test client whose outbound HTTP goes to the fake Graph."""
    app = create_app(settings, layout)
    app.state.pipeline = UploadPipeline(settings, layout, transport=httpx.MockTransport(graph))
    return TestClient(app)


@pytest.fixture
def sample_pdf():
    """Minimal PDF that is technically valid."""
    return b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>
endobj
xref
0 4
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
trailer
<< /Size 4 /Root 1 0 R >>
startxref
196
%%EOF"""


@pytest.fixture
def png_data_url():
    """A small PNG encoded the way an HTML canvas exports it."""
    buffer = io.BytesIO()
    Image.new("RGBA", (40, 16), (200, 30, 30, 255)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
