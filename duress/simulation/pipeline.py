"""
单步执行管线
============

一个仿真步 = 一组按拓扑顺序排列的命名步骤。
每个步骤声明其依赖，构建时校验依赖均排在前面；
检查点步骤返回致命故障时，本步后续步骤不再执行。
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..core.base_physics import FatalFault


@dataclass
class PipelineStep:
    """管线步骤"""
    name: str
    action: Callable[[int, int], Optional[FatalFault]]
    after: Tuple[str, ...] = ()
    checkpoint: bool = False      # 检查点: 返回致命故障则中止本步


@dataclass
class TickResult:
    """单步执行结果"""
    t: int
    dt: int
    executed: List[str] = field(default_factory=list)
    fatal: Optional[FatalFault] = None

    @property
    def completed(self) -> bool:
        return self.fatal is None


class TickPipeline:
    """有序步骤管线"""

    def __init__(self, steps: List[PipelineStep] = None):
        self.steps: List[PipelineStep] = []
        for step in steps or []:
            self.add(step)

    def add(self, step: PipelineStep):
        """追加步骤 (依赖必须已存在)"""
        known = set(self.order)
        if step.name in known:
            raise ValueError(f"步骤名称重复: {step.name}")
        missing = [name for name in step.after if name not in known]
        if missing:
            raise ValueError(f"步骤 {step.name} 的依赖未排在其前: {missing}")
        self.steps.append(step)

    @property
    def order(self) -> List[str]:
        return [s.name for s in self.steps]

    def dependencies(self, name: str) -> Tuple[str, ...]:
        for step in self.steps:
            if step.name == name:
                return step.after
        raise KeyError(name)

    def run(self, t: int, dt: int) -> TickResult:
        """按顺序执行全部步骤"""
        result = TickResult(t=t, dt=dt)
        for step in self.steps:
            outcome = step.action(t, dt)
            result.executed.append(step.name)
            if step.checkpoint and outcome is not None:
                result.fatal = outcome
                break
        return result
