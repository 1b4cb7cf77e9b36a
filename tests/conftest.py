from contextlib import contextmanager
import pytest

class FakeTable:
    """In-memory stand-in for a boto3 DynamoDB Table keyed by 'id'."""

    def __init__(self, page_size=2):
        self.items = {}
        self.page_size = page_size
        self.scan_calls = []
        self.batch_calls = []

    def put_item(self, Item):
        self.items[Item["id"]] = dict(Item)

    def get_item(self, Key):
        item = self.items.get(Key["id"])
        return {"Item": dict(item)} if item else {}

    def delete_item(self, Key, ReturnValues="NONE"):
        old = self.items.pop(Key["id"], None)
        if old and ReturnValues == "ALL_OLD":
            return {"Attributes": old}
        return {}

    def scan(self, **kwargs):
        self.scan_calls.append(kwargs)
        keys = sorted(self.items)
        start = kwargs.get("ExclusiveStartKey")
        offset = keys.index(start["id"]) + 1 if start else 0
        page = keys[offset:offset + self.page_size]
        response = {"Items": [dict(self.items[k]) for k in page]}
        if offset + self.page_size < len(keys):
            response["LastEvaluatedKey"] = {"id": page[-1]}
        return response

    @contextmanager
    def batch_writer(self, overwrite_by_pkeys=None):
        self.batch_calls.append(overwrite_by_pkeys)
        yield self

@pytest.fixture
def fake_table():
    return FakeTable()
