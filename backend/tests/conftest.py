"""Shared fixtures for reqbridge tests."""

import pytest

from reqbridge.models import (
    ApiRequest,
    BodyType,
    Collection,
    Folder,
    HttpMethod,
    KeyValue,
    RequestBody,
    Script,
)

TIMESTAMP = "2024-01-01T00:00:00Z"


@pytest.fixture
def make_request():
    """Factory for a GET https://api.example.com/users request with overrides."""

    def _make(**overrides) -> ApiRequest:
        fields = {
            "id": "test-id",
            "name": "Test Request",
            "method": HttpMethod.GET,
            "url": "https://api.example.com/users",
            "headers": [],
            "params": [],
            "body": RequestBody(type=BodyType.NONE),
            "created_at": TIMESTAMP,
            "updated_at": TIMESTAMP,
        }
        fields.update(overrides)
        return ApiRequest(**fields)

    return _make


@pytest.fixture
def sample_collection() -> Collection:
    """Collection with two top-level requests, one folder and one variable."""
    return Collection(
        id="col-123",
        name="Test Collection",
        description="A test collection",
        requests=[
            ApiRequest(
                id="req-1",
                name="Get Users",
                method=HttpMethod.GET,
                url="https://api.example.com/users",
                headers=[
                    KeyValue(id="h-1", key="Authorization", value="Bearer token"),
                    KeyValue(id="h-1b", key="X-Debug", value="1", enabled=False),
                ],
                params=[KeyValue(id="p-1", key="page", value="1")],
                created_at=TIMESTAMP,
                updated_at=TIMESTAMP,
            ),
            ApiRequest(
                id="req-2",
                name="Create User",
                method=HttpMethod.POST,
                url="https://api.example.com/users",
                headers=[KeyValue(id="h-2", key="Content-Type", value="application/json")],
                body=RequestBody(type=BodyType.JSON, content='{"name": "John"}'),
                test_script=Script(content="pm.test('created', () => {\n  pm.response.to.have.status(201);\n});"),
                created_at=TIMESTAMP,
                updated_at=TIMESTAMP,
            ),
        ],
        folders=[
            Folder(
                id="folder-1",
                name="Admin",
                description="Admin-only endpoints",
                requests=[
                    ApiRequest(
                        id="req-3",
                        name="Delete User",
                        method=HttpMethod.DELETE,
                        url="https://api.example.com/users/1",
                        created_at=TIMESTAMP,
                        updated_at=TIMESTAMP,
                    ),
                ],
                folders=[
                    Folder(
                        id="folder-2",
                        name="Audit",
                        requests=[
                            ApiRequest(
                                id="req-4",
                                name="Login Form",
                                method=HttpMethod.POST,
                                url="https://api.example.com/login",
                                body=RequestBody(
                                    type=BodyType.URLENCODED,
                                    form_data=[
                                        KeyValue(id="f-1", key="username", value="john"),
                                        KeyValue(id="f-2", key="otp", value="123", enabled=False),
                                    ],
                                ),
                                created_at=TIMESTAMP,
                                updated_at=TIMESTAMP,
                            ),
                        ],
                    ),
                ],
            ),
        ],
        variables=[KeyValue(id="v-1", key="base_url", value="https://api.example.com")],
        created_at=TIMESTAMP,
        updated_at=TIMESTAMP,
    )
