"""Testing helpers."""

from unittest import mock


class FakeCache(object):
    """Dict-backed stand-in for :class:`.Cache`, with mocked methods."""

    def __init__(self) -> None:
        self.data: dict = {}
        self.get = mock.MagicMock(side_effect=self.data.get)
        self.set = mock.MagicMock(side_effect=self.data.__setitem__)
        self.delete = mock.MagicMock(
            side_effect=lambda key: self.data.pop(key, None)
        )
