"""
Shared fakes and fixtures for the Library API unit tests

The DynamoDB table and Cognito are replaced with small in-memory fakes so that
multi-step flows (signup -> signin -> me, login -> expiry) can be exercised
end to end. S3 is a plain Mock.
"""

import copy
import hashlib
import uuid
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from library_backend import config


def make_client_error(code, message="error", operation="Operation"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)  # type: ignore[arg-type]


class FakeKVTable:
    """In-memory stand-in for the key-value DynamoDB table."""

    def __init__(self, page_size=None):
        self.items = {}
        self.page_size = page_size
        self.scan_calls = 0
        self.put_calls = 0

    def get_item(self, Key):
        item = self.items.get(Key["key"])
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    def put_item(self, Item):
        self.put_calls += 1
        self.items[Item["key"]] = copy.deepcopy(Item)
        return {}

    def delete_item(self, Key):
        self.items.pop(Key["key"], None)
        return {}

    def scan(self, ExpressionAttributeValues=None, ExclusiveStartKey=None, **kwargs):
        self.scan_calls += 1
        prefix = (ExpressionAttributeValues or {}).get(":prefix", "")
        keys = sorted(k for k in self.items if k.startswith(prefix))

        if ExclusiveStartKey:
            keys = [k for k in keys if k > ExclusiveStartKey["key"]]

        response = {}
        if self.page_size and len(keys) > self.page_size:
            keys = keys[: self.page_size]
            response["LastEvaluatedKey"] = {"key": keys[-1]}

        response["Items"] = [copy.deepcopy(self.items[k]) for k in keys]
        return response


class FakeCognito:
    """In-memory stand-in for the cognito-idp client."""

    MIN_PASSWORD_LENGTH = 4

    def __init__(self):
        self.users = {}
        self.tokens = {}

    def admin_create_user(self, UserPoolId, Username, UserAttributes, MessageAction):
        if Username in self.users:
            raise make_client_error("UsernameExistsException", "User account already exists")
        sub = str(uuid.uuid4())
        self.users[Username] = {"sub": sub, "password": None}
        return {
            "User": {
                "Username": Username,
                "Attributes": [{"Name": "sub", "Value": sub}, *UserAttributes],
            }
        }

    def admin_set_user_password(self, UserPoolId, Username, Password, Permanent):
        if len(Password) < self.MIN_PASSWORD_LENGTH:
            raise make_client_error("InvalidPasswordException", "Password did not conform with policy")
        self.users[Username]["password"] = Password
        return {}

    def admin_delete_user(self, UserPoolId, Username):
        self.users.pop(Username, None)
        return {}

    def admin_initiate_auth(self, UserPoolId, ClientId, AuthFlow, AuthParameters):
        user = self.users.get(AuthParameters["USERNAME"])
        if user is None:
            raise make_client_error("UserNotFoundException", "User does not exist.")
        if user["password"] != AuthParameters["PASSWORD"]:
            raise make_client_error("NotAuthorizedException", "Incorrect username or password.")
        return {"AuthenticationResult": {"AccessToken": self.issue_token(user["sub"])}}

    def get_user(self, AccessToken):
        sub = self.tokens.get(AccessToken)
        if sub is None:
            raise make_client_error("NotAuthorizedException", "Invalid Access Token")
        return {"Username": sub, "UserAttributes": [{"Name": "sub", "Value": sub}]}

    def issue_token(self, sub):
        token = f"access-{uuid.uuid4().hex}"
        self.tokens[token] = sub
        return token


def signed_url(operation, Params, ExpiresIn):
    return f"https://signed.example.com/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture(autouse=True)
def default_settings():
    """Pin settings that could leak in from the environment."""
    with patch.object(config, "ADMIN_PASSWORD_HASH", hashlib.sha256(b"7777").hexdigest()), \
         patch.object(config, "API_ANON_KEY", None), \
         patch.object(config, "API_BASE_PATH", "/library-api"), \
         patch.object(config, "BOOKS_PREFIX", "books/"), \
         patch.object(config, "BUCKET_NAME", "test-bucket"):
        yield


@pytest.fixture
def kv_table():
    table = FakeKVTable()
    with patch.object(config, "kv_table", table):
        yield table


@pytest.fixture
def paged_kv_table():
    """KV table returning at most two items per scan page."""
    table = FakeKVTable(page_size=2)
    with patch.object(config, "kv_table", table):
        yield table


@pytest.fixture
def s3():
    client = Mock()
    client.generate_presigned_url.side_effect = signed_url
    with patch.object(config, "s3_client", client):
        yield client


@pytest.fixture
def cognito():
    fake = FakeCognito()
    with patch.object(config, "cognito_client", fake):
        yield fake


@pytest.fixture
def backend(kv_table, s3, cognito):
    """All three AWS dependencies replaced; returns the KV table."""
    return kv_table
