"""Event 数据模型

描述一次意图中的状态流转：事件名 + 参数。
创建后不可修改，每次 dispatch 消费一次。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """待分发的事件"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="事件名，对应 EventRegistry 中的注册名")
    args: tuple[Any, ...] = Field(default=(), description="事件参数，按位置传给 handler")

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}{list(self.args)!r}"
