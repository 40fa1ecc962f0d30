"""
Petri网引擎集成测试
测试PetriNetEngine的完整功能

测试内容:
- 节点/弧编辑（编号、级联删除、方向约束）
- 激活与时钟驱动的完成
- 发射高亮过期
- 初始状态保存/恢复、清空画布
- 导入导出
"""

import json

import pytest

from conftest import FakeWallClock
from petrinet_sim.core.petri_engine import PetriNetEngine
from petrinet_sim.models.config_model import EngineConfig
from petrinet_sim.models.enums import FiringEventType, LabelPosition, NodeKind


def create_engine(wall_clock=None) -> PetriNetEngine:
    """创建引擎（使用可控的真实时间）"""
    return PetriNetEngine(
        EngineConfig(firing_pulse_ms=150),
        wall_clock=wall_clock or FakeWallClock()
    )


def build_simple_net(engine: PetriNetEngine, tokens: int = 2, delay: int = 3):
    """
    搭建 p0 --2--> t0 --1--> p1

    Returns:
        (p0, p1, t0) 节点ID
    """
    p0 = engine.create_node(NodeKind.PLACE, {"x": 0, "y": 0}).id
    p1 = engine.create_node(NodeKind.PLACE, {"x": 200, "y": 0}).id
    t0 = engine.create_node(NodeKind.TRANSITION, {"x": 100, "y": 0}).id

    engine.update_node_data(p0, {"tokens": tokens})
    engine.update_node_data(t0, {"delay": delay})
    arc_in = engine.create_arc(p0, t0)
    engine.update_arc_data(arc_in.id, {"weight": 2})
    engine.create_arc(t0, p1)
    return p0, p1, t0


class TestNodeEditing:
    """节点编辑测试"""

    def test_create_ids_and_numbers(self):
        """测试节点ID共用计数器、序号按类型连续"""
        engine = create_engine()
        p0 = engine.create_node("position")
        t1 = engine.create_node("transition")
        p2 = engine.create_node("position")

        assert [p0.id, t1.id, p2.id] == ["position-0", "transition-1", "position-2"]
        assert (p0.number, t1.number, p2.number) == (0, 0, 1)
        assert engine.node_id_counter == 3

    def test_create_invalid_kind(self):
        """测试无效节点类型"""
        engine = create_engine()
        assert engine.create_node("circle") is None
        assert engine.model.nodes == []

    def test_delete_renumbers(self):
        """测试删除后重新编号、ID不复用"""
        engine = create_engine()
        engine.create_node("position")
        engine.create_node("position")
        engine.create_node("position")

        assert engine.delete_node("position-0")
        numbers = [p.number for p in engine.model.places]
        assert numbers == [0, 1]
        assert engine.create_node("position").id == "position-3"

    def test_delete_cascades_arcs(self):
        """测试删除节点同时删除相连的弧"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)

        assert engine.delete_node(t0)
        assert engine.model.arcs == []
        assert not engine.delete_node(t0)

    def test_delete_nodes(self):
        """测试批量删除"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)

        assert engine.delete_nodes([p0, t0, "missing"]) == 2
        assert [n.id for n in engine.model.nodes] == [p1]
        assert engine.model.get_place(p1).number == 0

    def test_update_place(self):
        """测试修改库所数据（camelCase和snake_case均可）"""
        engine = create_engine()
        p = engine.create_node("position").id

        assert engine.update_node_data(p, {"tokens": 5, "label": "缓冲"})
        assert engine.update_node_data(p, {"labelPosition": "left"})
        assert engine.update_node_data(p, {"label_position": "right"})

        place = engine.get_node(p)
        assert place.tokens == 5
        assert place.label == "缓冲"
        assert place.label_position == LabelPosition.RIGHT

    def test_update_rejected(self):
        """测试无效修改被拒绝且不部分写入"""
        engine = create_engine()
        p = engine.create_node("position").id
        t = engine.create_node("transition").id

        assert not engine.update_node_data(p, {"tokens": 3, "label": 1.5j})
        assert not engine.update_node_data(p, {"tokens": -1})
        assert not engine.update_node_data(p, {"delay": 2})
        assert not engine.update_node_data(t, {"delay": -2})
        assert not engine.update_node_data(t, {"tokens": 1})
        assert not engine.update_node_data(t, {"waiting": True})
        assert not engine.update_node_data("missing", {"label": "x"})

        assert engine.get_node(p).tokens == 0
        assert engine.get_node(t).delay == 0
        assert not engine.get_node(t).waiting

    def test_update_refreshes_enablement(self):
        """测试修改托肯后重算使能标志"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine, tokens=0)
        assert not engine.get_node(t0).can_fire

        engine.update_node_data(p0, {"tokens": 2})
        assert engine.get_node(t0).can_fire


class TestArcEditing:
    """弧编辑测试"""

    def test_create_arc(self):
        """测试新建弧"""
        engine = create_engine()
        p = engine.create_node("position").id
        t = engine.create_node("transition").id
        arc = engine.create_arc(p, t)

        assert arc.id == f"xy-edge__{p}-{t}"
        assert arc.weight == 1

    def test_invalid_connections(self):
        """测试同类节点、不存在的节点和重复弧"""
        engine = create_engine()
        p0 = engine.create_node("position").id
        p1 = engine.create_node("position").id
        t0 = engine.create_node("transition").id
        t1 = engine.create_node("transition").id

        assert engine.create_arc(p0, p1) is None
        assert engine.create_arc(t0, t1) is None
        assert engine.create_arc(p0, "missing") is None
        assert engine.create_arc(p0, t0) is not None
        assert engine.create_arc(p0, t0) is None
        assert len(engine.model.arcs) == 1

    def test_update_arc(self):
        """测试修改弧数据"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)
        arc_id = engine.model.arcs[0].id

        assert engine.update_arc_data(arc_id, {"weight": 0})
        assert engine.get_arc(arc_id).weight == 1
        assert engine.update_arc_data(arc_id, {"label": "x", "labelPosition": "bottom"})
        assert not engine.update_arc_data(arc_id, {"source": p1})
        assert not engine.update_arc_data("missing", {"weight": 2})

    def test_delete_arcs(self):
        """测试删除弧"""
        engine = create_engine()
        build_simple_net(engine)
        ids = [a.id for a in engine.model.arcs]

        assert engine.delete_arc(ids[0])
        assert not engine.delete_arc(ids[0])
        assert engine.delete_arcs(ids) == 1
        assert engine.model.arcs == []


class TestFiring:
    """发射测试"""

    def test_delayed_firing_scenario(self):
        """测试延时发射完整流程"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine, tokens=2, delay=3)

        assert engine.time == 0
        assert engine.is_enabled(t0)
        assert engine.start_transition(t0)

        transition = engine.get_node(t0)
        assert engine.get_node(p0).tokens == 0
        assert transition.waiting
        assert transition.tokens_removed
        assert transition.activation_time == 0

        assert engine.advance_clock(2) == 2
        assert engine.get_node(p1).tokens == 0
        assert engine.get_pending_transitions() == {t0: 1}

        assert engine.advance_clock() == 3
        assert engine.get_node(p1).tokens == 1
        assert not transition.waiting
        assert not transition.tokens_removed
        assert transition.firing

    def test_insufficient_tokens(self):
        """测试托肯不足时激活失败"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine, tokens=1)

        assert not engine.start_transition(t0)
        assert engine.get_node(p0).tokens == 1
        assert engine.get_node(p1).tokens == 0
        assert engine.events == []

    def test_zero_delay(self):
        """测试无延时变迁立即完成，时钟不变"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine, delay=0)

        assert engine.start_transition(t0)
        assert engine.time == 0
        assert engine.get_node(p1).tokens == 1
        assert engine.get_node(t0).firing

    def test_cannot_restart_in_flight(self):
        """测试在途变迁不能再次激活"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine, tokens=4)

        assert engine.start_transition(t0)
        assert not engine.start_transition(t0)
        assert engine.get_node(p0).tokens == 2

    def test_delete_input_place_while_waiting(self):
        """测试等待期间删除输入库所不影响完成"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)
        engine.start_transition(t0)

        engine.delete_node(p0)
        engine.advance_clock(3)
        assert engine.get_node(p1).tokens == 1

    def test_pulse_expires(self):
        """测试发射高亮在下一次操作时过期"""
        wall = FakeWallClock()
        engine = create_engine(wall_clock=wall)
        p0, p1, t0 = build_simple_net(engine, delay=0)
        engine.start_transition(t0)
        assert engine.get_node(t0).firing

        wall.advance(0.05)
        engine.advance_clock()
        assert engine.get_node(t0).firing

        wall.advance(0.2)
        engine.advance_clock()
        assert not engine.get_node(t0).firing

    def test_pulse_expires_while_idle(self):
        """测试空闲时读取节点也会清除过期高亮"""
        wall = FakeWallClock()
        engine = create_engine(wall_clock=wall)
        p0, p1, t0 = build_simple_net(engine, delay=0)
        engine.start_transition(t0)

        wall.advance(10)
        assert not engine.get_node(t0).firing
        assert engine.get_summary()["phase_counts"]["fired"] == 0

    def test_parallel_input_arcs_agree_with_start(self):
        """测试导入的并行输入弧：使能标志与激活结果一致"""
        document = {
            "nodes": [
                {"id": "position-0", "type": "position",
                 "position": {"x": 0, "y": 0}, "data": {"tokens": 1}},
                {"id": "transition-1", "type": "transition",
                 "position": {"x": 100, "y": 0}, "data": {"delay": 0}},
            ],
            "edges": [
                {"id": "e1", "source": "position-0", "target": "transition-1",
                 "data": {"weight": 1}},
                {"id": "e2", "source": "position-0", "target": "transition-1",
                 "data": {"weight": 1}},
            ],
        }
        engine = create_engine()
        assert engine.import_model(json.dumps(document))

        assert not engine.is_enabled("transition-1")
        assert not engine.get_node("transition-1").can_fire
        assert not engine.start_transition("transition-1")

        engine.update_node_data("position-0", {"tokens": 2})
        assert engine.get_node("transition-1").can_fire
        assert engine.start_transition("transition-1")
        assert engine.get_node("position-0").tokens == 0

    def test_can_fire_refresh_after_firing(self):
        """测试发射后重算使能标志"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine, tokens=2)
        assert engine.get_node(t0).can_fire

        engine.start_transition(t0)
        engine.advance_clock(3)
        assert not engine.get_node(t0).can_fire

    def test_events_and_subscribe(self):
        """测试事件记录与订阅"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)
        received = []
        unsubscribe = engine.event_collector.subscribe(received.append)

        engine.start_transition(t0)
        engine.advance_clock(3)
        unsubscribe()

        assert [e.event_type for e in received] == [
            FiringEventType.STARTED.value,
            FiringEventType.COMPLETED.value,
        ]
        assert [e.time for e in engine.events] == [0, 3]

    def test_reset_clock(self):
        """测试时钟归零"""
        engine = create_engine()
        engine.advance_clock(5)
        assert engine.reset_clock()
        assert engine.time == 0
        assert engine.advance_clock() == 1


class TestSnapshot:
    """初始状态测试"""

    def test_reset_without_save(self):
        """测试未保存时恢复失败"""
        engine = create_engine()
        build_simple_net(engine)
        before = engine.export_model()

        assert not engine.is_initial_state_saved
        assert not engine.reset_to_initial_state()
        assert engine.export_model() == before

    def test_save_and_restore(self):
        """测试保存后运行再恢复"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)

        assert engine.save_initial_state()
        assert engine.is_initial_state_saved

        engine.start_transition(t0)
        engine.advance_clock(4)
        assert engine.get_node(p1).tokens == 1

        assert engine.reset_to_initial_state()
        assert engine.time == 0
        assert engine.get_node(p0).tokens == 2
        assert engine.get_node(p1).tokens == 0
        assert engine.get_node(t0).can_fire

        # 可以多次恢复
        engine.start_transition(t0)
        assert engine.reset_to_initial_state()
        assert engine.get_node(p0).tokens == 2

    def test_reset_canvas(self):
        """测试清空画布"""
        engine = create_engine()
        build_simple_net(engine)
        engine.save_initial_state()
        engine.advance_clock(2)

        assert engine.reset_canvas()
        assert engine.model.nodes == []
        assert engine.model.arcs == []
        assert engine.time == 0
        assert not engine.is_initial_state_saved
        assert engine.create_node("position").id == "position-0"


class TestImportExport:
    """导入导出测试"""

    def test_round_trip(self):
        """测试导出后导入到新引擎"""
        engine = create_engine()
        build_simple_net(engine)
        text = engine.export_model()

        other = create_engine()
        assert other.import_model(text)
        assert other.export_model() == text
        assert other.create_node("position").id == "position-3"

    def test_import_failure_keeps_model(self):
        """测试导入失败时模型不变"""
        engine = create_engine()
        build_simple_net(engine)
        before = engine.export_model()

        assert not engine.import_model("not json")
        result = engine.import_model_detailed(json.dumps({"nodes": []}))
        assert not result.success
        assert engine.export_model() == before

    def test_import_keeps_clock_and_snapshot(self):
        """测试导入不影响时钟和快照"""
        engine = create_engine()
        build_simple_net(engine)
        engine.save_initial_state()
        engine.advance_clock(2)
        text = engine.export_model()

        assert engine.import_model(text)
        assert engine.time == 2
        assert engine.is_initial_state_saved

    def test_import_in_flight_completes(self):
        """测试导入在途变迁后按时钟完成"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)
        engine.start_transition(t0)
        text = engine.export_model()

        other = create_engine()
        assert other.import_model(text)
        assert other.get_node(t0).in_flight
        other.advance_clock(3)
        assert other.get_node(p1).tokens == 1

    def test_default_positions_round_trip(self):
        """测试未指定坐标的节点导出再导入后文档不变"""
        engine = create_engine()
        p = engine.create_node("position").id
        t = engine.create_node("transition").id
        engine.create_arc(p, t)
        text = engine.export_model()

        other = create_engine()
        assert other.import_model(text)
        assert other.export_model() == text

    def test_deeply_nested_import_fails_cleanly(self):
        """测试嵌套过深的输入返回失败而不抛异常"""
        engine = create_engine()
        build_simple_net(engine)
        before = engine.export_model()

        text = "[" * 100000 + "]" * 100000
        assert not engine.import_model(text)
        result = engine.import_model_detailed(text)
        assert not result.success
        assert result.errors
        assert engine.export_model() == before

    def test_file_round_trip(self, tmp_path):
        """测试文件导入导出"""
        engine = create_engine()
        build_simple_net(engine)
        path = str(tmp_path / "net.json")

        assert engine.export_model_file(path)
        other = create_engine()
        assert other.import_model_file(path).success
        assert other.get_marking().tolist() == [2, 0]


class TestSummary:
    """状态汇总测试"""

    def test_summary(self):
        """测试汇总信息"""
        engine = create_engine()
        p0, p1, t0 = build_simple_net(engine)
        engine.start_transition(t0)
        engine.advance_clock(1)

        summary = engine.get_summary()
        assert summary["time"] == 1
        assert summary["marking"] == [0, 0]
        assert summary["in_flight_tokens"] == 2
        assert summary["waiting_transitions"] == {t0: 2}
        assert summary["events"]["total_started"] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
