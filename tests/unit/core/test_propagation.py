"""Tests for sparse delta-threshold send / un-send propagation.

Covers the per-unit send rule, routing of each channel type to exactly
one sweep, disabled projections and the sent-shadow bookkeeping.
"""

from unittest.mock import Mock

import pytest
import torch

from laminar.config import OptThreshParams
from laminar.core import LayerRole, Network, ProjectionType, SendStats, delta_sweep
from laminar.core.propagation import ACT_SWEEP_ROUTES, BURST_SWEEP_ROUTES
from tests.utils import build_pair, make_layer_config, set_acts, set_bursts, sweep_only, unit_weights

PRIMITIVES = ("send_ge_delta", "send_attn_ge_delta", "send_trc_burst_ge_delta", "send_ctxt_ge")


def spy_primitives(monkeypatch, pj):
    """Wrap every send primitive of a projection in a recording Mock."""
    spies = {}
    for name in PRIMITIVES:
        spy = Mock(wraps=getattr(pj, name))
        monkeypatch.setattr(pj, name, spy)
        spies[name] = spy
    return spies


def fake_projection(ptype, off=False):
    pj = Mock()
    pj.channel_type = ptype
    pj.is_off.return_value = off
    return pj


@pytest.mark.unit
class TestRouteTables:
    """Each channel type is placed in both sweep tables."""

    def test_every_type_routed_in_both_sweeps(self):
        assert set(ACT_SWEEP_ROUTES) == set(ProjectionType)
        assert set(BURST_SWEEP_ROUTES) == set(ProjectionType)

    def test_burst_types_skipped_by_act_sweep(self):
        assert ACT_SWEEP_ROUTES[ProjectionType.BURST_TRC] is None
        assert ACT_SWEEP_ROUTES[ProjectionType.BURST_CTXT] is None

    def test_burst_sweep_only_carries_trc(self):
        routed = {t for t, fn in BURST_SWEEP_ROUTES.items() if fn is not None}
        assert routed == {ProjectionType.BURST_TRC}


@pytest.mark.unit
class TestDeltaSweep:
    """delta_sweep on bare tensors and fake projections."""

    def setup_method(self):
        self.thresh = OptThreshParams(send=0.1, delta=0.02)

    def test_send_above_threshold(self):
        values = torch.tensor([0.0, 0.5, 0.05])
        sent = torch.zeros(3)
        pj = fake_projection(ProjectionType.STANDARD)

        stats = delta_sweep(values, sent, self.thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats == SendStats(sends=1, unsends=0)
        pj.send_ge_delta.assert_called_once()
        si, d = pj.send_ge_delta.call_args[0]
        assert si.tolist() == [1]
        assert torch.allclose(d, torch.tensor([0.5]))
        assert sent.tolist() == [0.0, 0.5, 0.0]

    def test_unsend_sends_negative_last_value(self):
        values = torch.tensor([0.0, 0.02, 0.05])
        sent = torch.tensor([0.0, 0.5, 0.0])
        pj = fake_projection(ProjectionType.STANDARD)

        stats = delta_sweep(values, sent, self.thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats == SendStats(sends=0, unsends=1)
        si, d = pj.send_ge_delta.call_args[0]
        assert si.tolist() == [1]
        assert d.tolist() == [-0.5]
        assert sent.tolist() == [0.0, 0.0, 0.0]

    def test_change_within_delta_is_not_sent(self):
        values = torch.tensor([0.51])
        sent = torch.tensor([0.5])
        pj = fake_projection(ProjectionType.STANDARD)

        stats = delta_sweep(values, sent, self.thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats.events == 0
        pj.send_ge_delta.assert_not_called()
        assert torch.allclose(sent, torch.tensor([0.5]))

    def test_thresholds_are_strict(self):
        # value == send is not above threshold; change == delta is not sent
        thresh = OptThreshParams(send=0.5, delta=0.25)
        values = torch.tensor([0.5, 0.75])
        sent = torch.tensor([0.0, 0.5])
        pj = fake_projection(ProjectionType.STANDARD)

        stats = delta_sweep(values, sent, thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats.events == 0
        pj.send_ge_delta.assert_not_called()

    def test_sent_equal_to_send_threshold_is_not_unsent(self):
        thresh = OptThreshParams(send=0.5, delta=0.25)
        values = torch.tensor([0.0])
        sent = torch.tensor([0.5])
        pj = fake_projection(ProjectionType.STANDARD)

        stats = delta_sweep(values, sent, thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats.events == 0
        assert sent.tolist() == [0.5]

    def test_shadow_updated_without_projections(self):
        values = torch.tensor([0.3, 0.0])
        sent = torch.tensor([0.0, 0.4])

        stats = delta_sweep(values, sent, self.thresh, [], ACT_SWEEP_ROUTES)

        assert stats == SendStats(sends=1, unsends=1)
        assert torch.allclose(sent, torch.tensor([0.3, 0.0]))

    def test_off_projection_not_called(self):
        values = torch.tensor([0.5])
        sent = torch.zeros(1)
        on = fake_projection(ProjectionType.STANDARD)
        off = fake_projection(ProjectionType.STANDARD, off=True)

        delta_sweep(values, sent, self.thresh, [off, on], ACT_SWEEP_ROUTES)

        off.send_ge_delta.assert_not_called()
        on.send_ge_delta.assert_called_once()

    def test_no_firing_units_calls_nothing(self):
        values = torch.tensor([0.05, 0.0])
        sent = torch.zeros(2)
        pj = fake_projection(ProjectionType.STANDARD)

        stats = delta_sweep(values, sent, self.thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats == SendStats()
        assert pj.method_calls == []

    def test_one_call_per_projection_for_many_units(self):
        values = torch.tensor([0.5, 0.6, 0.7, 0.0])
        sent = torch.zeros(4)
        pj = fake_projection(ProjectionType.DEEP_ATTN)

        stats = delta_sweep(values, sent, self.thresh, [pj], ACT_SWEEP_ROUTES)

        assert stats.sends == 3
        pj.send_attn_ge_delta.assert_called_once()
        si, d = pj.send_attn_ge_delta.call_args[0]
        assert si.tolist() == [0, 1, 2]
        assert torch.allclose(d, torch.tensor([0.5, 0.6, 0.7]))


@pytest.mark.unit
class TestActivationSweep:
    """Activation sweep through real layers: act / act_sent into ge."""

    def test_three_unit_send_then_unsend(self, standard_pair):
        net, send, recv, pj = standard_pair
        base = send.as_rate()

        set_acts(send, [0.0, 0.5, 0.05])
        sweep_only(net)

        assert send.act_stats == SendStats(sends=1, unsends=0)
        assert torch.allclose(base.state.act_sent, torch.tensor([0.0, 0.5, 0.0]))
        assert torch.allclose(recv.as_rate().state.ge_inc, torch.tensor([0.5]))
        assert torch.allclose(recv.as_rate().state.ge_raw, torch.tensor([0.5]))

        set_acts(send, [0.0, 0.02, 0.05])
        sweep_only(net)

        assert send.act_stats == SendStats(sends=0, unsends=1)
        assert torch.allclose(base.state.act_sent, torch.zeros(3))
        assert torch.allclose(recv.as_rate().state.ge_inc, torch.tensor([-0.5]))
        assert torch.allclose(recv.as_rate().state.ge_raw, torch.zeros(1))

    def test_no_double_send_below_delta(self, standard_pair, monkeypatch):
        net, send, recv, pj = standard_pair
        set_acts(send, [0.0, 0.5, 0.05])
        sweep_only(net)

        spies = spy_primitives(monkeypatch, pj)
        set_acts(send, [0.0, 0.51, 0.05])
        sweep_only(net)

        spies["send_ge_delta"].assert_not_called()
        assert send.as_rate().state.act_sent[1].item() == pytest.approx(0.5)
        assert torch.allclose(recv.as_rate().state.ge_raw, torch.tensor([0.5]))

    def test_receiver_input_equals_weighted_sent(self):
        net, send, recv, pj = build_pair(n_send=3, n_recv=2, weight=0.5)
        for acts in ([0.2, 0.4, 0.0], [0.3, 0.41, 0.9], [0.0, 0.5, 0.9]):
            set_acts(send, acts)
            sweep_only(net)
            expected = pj.weights @ send.as_rate().state.act_sent
            assert torch.allclose(recv.as_rate().state.ge_raw, expected, atol=1e-6)

    def test_disabled_projection_receives_nothing(self, standard_pair, monkeypatch):
        net, send, recv, pj = standard_pair
        pj.set_off(True)
        spies = spy_primitives(monkeypatch, pj)

        set_acts(send, [0.9, 0.9, 0.9])
        sweep_only(net)

        for spy in spies.values():
            spy.assert_not_called()
        assert torch.all(recv.as_rate().state.ge_raw == 0)
        # the shadow still advances
        assert torch.allclose(send.as_rate().state.act_sent, torch.full((3,), 0.9))

    def test_shadow_updated_for_layer_without_projections(self):
        net = Network("solo")
        solo = net.add_layer("solo", [2], LayerRole.SUPER, make_layer_config())
        net.build()
        net.init_acts()

        set_acts(solo, [0.7, 0.0])
        sweep_only(net)

        assert torch.allclose(solo.as_rate().state.act_sent, torch.tensor([0.7, 0.0]))
        assert solo.act_stats.sends == 1

    def test_attention_projection_feeds_attn_ge(self):
        net, send, recv, pj = build_pair(ProjectionType.DEEP_ATTN, n_send=3, n_recv=2)
        set_acts(send, [0.5, 0.0, 0.25])
        sweep_only(net)

        assert torch.allclose(recv.neurons.attn_ge, torch.full((2,), 0.75))
        assert torch.all(recv.as_rate().state.ge_raw == 0)

        set_acts(send, [0.0, 0.0, 0.0])
        sweep_only(net)
        assert torch.allclose(recv.neurons.attn_ge, torch.zeros(2), atol=1e-7)

    @pytest.mark.parametrize("ptype", [ProjectionType.STANDARD, ProjectionType.DEEP_ATTN])
    def test_unsend_after_decay_retracts_exactly(self, ptype):
        net, send, recv, pj = build_pair(ptype)
        set_acts(send, [0.5, 0.0, 0.0])
        sweep_only(net)

        net.decay_state(0.5)
        assert send.as_rate().state.act_sent[0].item() == pytest.approx(0.5)

        set_acts(send, [0.0, 0.0, 0.0])
        sweep_only(net)

        assert send.act_stats == SendStats(sends=0, unsends=1)
        assert torch.all(send.as_rate().state.act_sent == 0)
        assert torch.allclose(recv.as_rate().state.ge_raw, torch.zeros(1), atol=1e-7)
        assert torch.allclose(recv.neurons.attn_ge, torch.zeros(1), atol=1e-7)


@pytest.mark.unit
class TestBurstSweep:
    """Burst sweep: burst / burst_sent into the thalamic drive."""

    def test_burst_send_and_unsend(self):
        net, send, recv, pj = build_pair(ProjectionType.BURST_TRC, n_send=2, n_recv=1)

        set_bursts(send, [0.5, 0.3])
        sweep_only(net)
        assert send.burst_stats == SendStats(sends=2, unsends=0)
        assert recv.neurons.trc_burst_ge.item() == pytest.approx(0.8)
        assert torch.allclose(send.neurons.burst_sent, torch.tensor([0.5, 0.3]))

        set_bursts(send, [0.0, 0.3])
        sweep_only(net)
        assert send.burst_stats == SendStats(sends=0, unsends=1)
        assert recv.neurons.trc_burst_ge.item() == pytest.approx(0.3)
        assert torch.allclose(send.neurons.burst_sent, torch.tensor([0.0, 0.3]))

    def test_burst_and_act_shadows_are_independent(self):
        net, send, recv, pj = build_pair(ProjectionType.BURST_TRC, n_send=1, n_recv=1)
        set_acts(send, [0.6])
        sweep_only(net)

        assert send.as_rate().state.act_sent.item() == pytest.approx(0.6)
        assert send.neurons.burst_sent.item() == 0.0
        assert recv.neurons.trc_burst_ge.item() == 0.0


@pytest.mark.unit
class TestChannelIsolation:
    """Every projection receives only the primitive its channel routes to."""

    def build_fan_out(self):
        cfg = make_layer_config()
        net = Network("fan")
        src = net.add_layer("src", [2], LayerRole.SUPER, cfg)
        targets = {
            ProjectionType.STANDARD: net.add_layer("std", [1], LayerRole.SUPER, cfg),
            ProjectionType.BURST_CTXT: net.add_layer("ctxt", [1], LayerRole.DEEP, cfg),
            ProjectionType.BURST_TRC: net.add_layer("trc", [1], LayerRole.TRC, cfg),
            ProjectionType.DEEP_ATTN: net.add_layer("attn", [1], LayerRole.SUPER, cfg),
        }
        pjs = {
            ptype: net.connect_layers(src, recv, ptype, unit_weights())
            for ptype, recv in targets.items()
        }
        net.build()
        net.init_acts()
        return net, src, targets, pjs

    def test_act_sweep_dispatch(self, monkeypatch):
        net, src, targets, pjs = self.build_fan_out()
        spies = {ptype: spy_primitives(monkeypatch, pj) for ptype, pj in pjs.items()}

        # identical act and burst: only the channel type decides the route
        set_acts(src, [0.5, 0.5])
        set_bursts(src, [0.5, 0.5])
        src.send_ge_delta()

        assert spies[ProjectionType.STANDARD]["send_ge_delta"].call_count == 1
        assert spies[ProjectionType.DEEP_ATTN]["send_attn_ge_delta"].call_count == 1
        for ptype in (ProjectionType.BURST_TRC, ProjectionType.BURST_CTXT):
            for spy in spies[ptype].values():
                spy.assert_not_called()
        assert spies[ProjectionType.STANDARD]["send_attn_ge_delta"].call_count == 0
        assert spies[ProjectionType.DEEP_ATTN]["send_ge_delta"].call_count == 0

    def test_burst_sweep_dispatch(self, monkeypatch):
        net, src, targets, pjs = self.build_fan_out()
        spies = {ptype: spy_primitives(monkeypatch, pj) for ptype, pj in pjs.items()}

        set_acts(src, [0.5, 0.5])
        set_bursts(src, [0.5, 0.5])
        src.send_trc_burst_ge_delta()

        assert spies[ProjectionType.BURST_TRC]["send_trc_burst_ge_delta"].call_count == 1
        for ptype in (ProjectionType.STANDARD, ProjectionType.DEEP_ATTN, ProjectionType.BURST_CTXT):
            for spy in spies[ptype].values():
                spy.assert_not_called()

    def test_trc_receiver_untouched_by_activation(self):
        net, src, targets, pjs = self.build_fan_out()
        set_acts(src, [0.9, 0.9])
        sweep_only(net)

        trc = targets[ProjectionType.BURST_TRC]
        assert torch.all(trc.neurons.trc_burst_ge == 0)
        assert torch.all(trc.as_rate().state.ge_raw == 0)
        assert torch.allclose(targets[ProjectionType.STANDARD].as_rate().state.ge_raw, torch.tensor([1.8]))

    def test_context_sent_absolute_over_ctxt_only(self, monkeypatch):
        net, src, targets, pjs = self.build_fan_out()
        spies = {ptype: spy_primitives(monkeypatch, pj) for ptype, pj in pjs.items()}

        set_bursts(src, [0.5, 0.05])
        n = src.send_ctxt_ge()

        assert n == 1
        assert spies[ProjectionType.BURST_CTXT]["send_ctxt_ge"].call_count == 1
        for ptype in (ProjectionType.STANDARD, ProjectionType.DEEP_ATTN, ProjectionType.BURST_TRC):
            for spy in spies[ptype].values():
                spy.assert_not_called()
        assert targets[ProjectionType.BURST_CTXT].inputs.ctxt_ge.item() == pytest.approx(0.5)

        # absolute: a second send with no change adds the full value again
        src.send_ctxt_ge()
        assert targets[ProjectionType.BURST_CTXT].inputs.ctxt_ge.item() == pytest.approx(1.0)
