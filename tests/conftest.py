"""
测试公共工具
"""


class FakeWallClock:
    """可手动拨动的真实时间（秒）"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds
