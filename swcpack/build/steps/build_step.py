"""
构建步骤基类模块

定义库构建和摘要修补两条流水线共用的步骤接口。
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Tuple, TypeVar

ContextT = TypeVar('ContextT')


class BuildStep(ABC, Generic[ContextT]):
    """构建步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, context: ContextT) -> None:
        """执行构建步骤"""
        pass

    @abstractmethod
    def get_progress_range(self) -> Tuple[int, int]:
        """获取此步骤的进度范围 (start_percent, end_percent)"""
        pass

    def __repr__(self) -> str:
        start, end = self.get_progress_range()
        return f"<{type(self).__name__} {self.name} {start}-{end}%>"


def validate_steps(steps: Any) -> list:
    """验证步骤的进度范围从 0 连续覆盖到 100

    Returns:
        list: 验证错误列表，空列表表示验证通过
    """
    errors = []

    if not steps:
        errors.append("流水线中没有步骤")
        return errors

    prev_end = 0
    for step in steps:
        start, end = step.get_progress_range()
        if start != prev_end:
            errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
        if start >= end:
            errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
        prev_end = end

    if prev_end != 100:
        errors.append(f"流水线的总进度范围不是100%: {prev_end}%")

    return errors
