"""
POWER9 scheduling model.

Approximates the dispatch and execution resources of an IBM POWER9 core
(SMT4 mode) for a list scheduler.
"""

from typing import Optional

from ..core.builder import SchedModelBuilder
from ..core.parameters import MachineParameters
from ..core.resolution import SchedulingModel
from ..logging import ModelLogger


POWER9_UNSUPPORTED_FEATURES = frozenset({
    "spe",
    "prefix_instrs",
    "mma",
    "paired_vector_memops",
    "isa_3_1",
})


def power9_sched_model(logger: Optional[ModelLogger] = None) -> SchedulingModel:
    """
    IBM POWER9 - Superscalar out-of-order server core.

    FRONT END:
    - Dispatches up to 6 instructions per cycle into two superslice halves
      (3 even slots, 3 odd slots) plus one dedicated branch slot
    - Some instructions must start a dispatch group on an even slot or take
      a slot pair; cracked instructions take 3 slots
    - 60-entry loop buffer

    ISSUE:
    - 4 execution issue ports split into even/odd halves
    - 4 address generation issue ports

    EXECUTION PIPELINES:
    - ALU (4): two even, two odd; fully pipelined
    - DP (4): floating point / vector, two even, two odd; 7 cycles
    - DIV (2): integer/FP divide, not pipelined
    - LS (4): load/store, 4-5 cycle cache hit
    - PM (2): permute; DFU (1): decimal floating point; CY (1): crypto
    - BR (1): branch, 16-entry queue

    CALIBRATION STATUS:
    ⚠ ESTIMATED - Latencies from the POWER9 user manual instruction tables;
    resource splits simplified to per-superslice halves.

    UNSUPPORTED:
    - SPE, prefixed instructions, MMA, paired vector memops and other
      ISA 3.1 (POWER10) features are rejected at query time
    """
    b = SchedModelBuilder("power9", logger=logger)

    # Dispatch: 6 slots split into superslice halves, plus the branch slot
    b.define_resource("DISPATCHER", 6)
    b.define_resource("DISP_EVEN", 3, superset="DISPATCHER")
    b.define_resource("DISP_ODD", 3, superset="DISPATCHER")
    b.define_resource("DISP_BR", 1)
    b.define_group("DISP_NON_BR", ["DISP_EVEN", "DISP_ODD"])

    # Issue ports
    b.define_resource("IP_EXEC", 4)
    b.define_resource("IP_EXECE", 2, superset="IP_EXEC")
    b.define_resource("IP_EXECO", 2, superset="IP_EXEC")
    b.define_resource("IP_AGEN", 4)

    # Execution pipelines
    b.define_resource("ALU", 4)
    b.define_resource("ALUE", 2, superset="ALU")
    b.define_resource("ALUO", 2, superset="ALU")
    b.define_resource("DP", 4)
    b.define_resource("DPE", 2, superset="DP")
    b.define_resource("DPO", 2, superset="DP")
    b.define_resource("DIV", 2)
    b.define_resource("LS", 4)
    b.define_resource("PM", 2)
    b.define_resource("DFU", 1)
    b.define_resource("CY", 1)
    b.define_resource("BR", 1, buffer_size=16)
    b.define_group("ANY_VECTOR_PIPE", ["DP", "PM"])

    # Front-end bookkeeping: a dispatch slot, no execution resource
    b.define_descriptor("DISP_1C", ["DISP_NON_BR"], latency=0, micro_ops=0)
    b.define_descriptor("DISP_EVEN_1C", ["DISP_EVEN"], latency=0, micro_ops=0)
    b.define_descriptor("DISP_PAIR_1C", ["DISP_EVEN", "DISP_ODD"], latency=0, micro_ops=0)
    b.define_descriptor("DISP_3SLOTS_1C", ["DISPATCHER"] * 3, latency=0, micro_ops=0)
    b.define_descriptor("DISP_BR_1C", ["DISP_BR"], latency=0, micro_ops=0)
    b.define_descriptor("IP_EXEC_1C", ["IP_EXEC"], latency=1, micro_ops=0)
    b.define_descriptor("IP_EXECE_1C", ["IP_EXECE"], latency=1, micro_ops=0)
    b.define_descriptor("IP_EXECO_1C", ["IP_EXECO"], latency=1, micro_ops=0)
    b.define_descriptor("IP_AGEN_1C", ["IP_AGEN"], latency=1, micro_ops=0)

    # Fixed point
    b.define_descriptor("P9_ALU_2C", ["ALU"], latency=2)
    b.define_descriptor("P9_ALUE_2C", ["ALUE"], latency=2)
    b.define_descriptor("P9_ALUO_2C", ["ALUO"], latency=2)
    b.define_descriptor("P9_ALU_3C", ["ALU"], latency=3)
    b.define_descriptor("P9_ALUE_3C", ["ALUE"], latency=3)
    b.define_descriptor("P9_ALUO_3C", ["ALUO"], latency=3)
    b.define_descriptor("P9_DIV_12C", ["DIV"], latency=12, occupancy=12)
    b.define_descriptor("P9_DIV_16C_8", ["DIV"], latency=16, occupancy=8)
    b.define_descriptor("P9_DIV_24C_8", ["DIV"], latency=24, occupancy=8)
    b.define_descriptor("P9_DIV_40C_8", ["DIV"], latency=40, occupancy=8)

    # Floating point / vector
    b.define_descriptor("P9_DP_5C", ["DP"], latency=5)
    b.define_descriptor("P9_DPE_7C", ["DPE"], latency=7)
    b.define_descriptor("P9_DPO_7C", ["DPO"], latency=7)
    b.define_descriptor("P9_DP_7C", ["DP"], latency=7)
    b.define_descriptor("P9_DP_22C_5", ["DP"], latency=22, occupancy=5)
    b.define_descriptor("P9_DP_24C_8", ["DP"], latency=24, occupancy=8)
    b.define_descriptor("P9_DP_26C_5", ["DP"], latency=26, occupancy=5)
    b.define_descriptor("P9_DP_27C_7", ["DP"], latency=27, occupancy=7)
    b.define_descriptor("P9_DP_33C_8", ["DP"], latency=33, occupancy=8)
    b.define_descriptor("P9_DPOpAndFMA_14C", ["DPE", "DPO"], latency=14)
    b.define_descriptor("P9_PM_3C", ["PM"], latency=3)
    b.define_descriptor("P9_VEC_3C", ["ANY_VECTOR_PIPE"], latency=3)
    b.define_descriptor("P9_DFU_12C", ["DFU"], latency=12)
    b.define_descriptor("P9_DFU_23C", ["DFU"], latency=23, occupancy=11)
    b.define_descriptor("P9_DFU_24C", ["DFU"], latency=24, occupancy=12)
    b.define_descriptor("P9_DFU_58C", ["DFU"], latency=58, occupancy=44)
    b.define_descriptor("P9_DFU_76C", ["DFU"], latency=76, occupancy=62)
    b.define_descriptor("P9_CY_6C", ["CY"], latency=6)

    # Load/store and branch
    b.define_descriptor("P9_LS_1C", ["LS"], latency=1)
    b.define_descriptor("P9_LS_4C", ["LS"], latency=4)
    b.define_descriptor("P9_LS_5C", ["LS"], latency=5)
    b.define_descriptor("P9_StoreAndALUOp_3C", ["LS", "ALU"], latency=3)
    b.define_descriptor("P9_BR_2C", ["BR"], latency=2)
    b.define_descriptor("P9_BR_5C", ["BR"], latency=5)

    # POWER10-only operations; present so shared operation tables resolve,
    # rejected by this model at query time
    b.define_descriptor("P10_PrefixedLoad_4C", ["LS"], latency=4, features=["prefix_instrs"])
    b.define_descriptor("P10_MMA_8C", ["DP", "DP"], latency=8, occupancy=2, features=["mma"])

    # Cracked operations: stages serialize
    b.compose("P9_LoadAndALUOp_6C", ["P9_LS_4C", "P9_ALU_2C"])
    b.compose("P9_LoadAndALUOp_7C", ["P9_LS_5C", "P9_ALU_2C"])
    b.compose("P9_LoadAndALU2Op_7C", ["P9_LS_4C", "P9_ALU_3C"])
    b.compose("P9_LoadAndALU2Op_8C", ["P9_LS_5C", "P9_ALU_3C"])
    b.compose("P9_LoadAndPMOp_8C", ["P9_LS_5C", "P9_PM_3C"])
    b.compose("P9_LoadAndLoadOp_8C", ["P9_LS_4C", "P9_LS_4C"])
    b.compose("P9_IntDivAndALUOp_18C_8", ["P9_DIV_16C_8", "P9_ALU_2C"])
    b.compose("P9_IntDivAndALUOp_26C_8", ["P9_DIV_24C_8", "P9_ALU_2C"])
    b.compose("P9_IntDivAndALUOp_42C_8", ["P9_DIV_40C_8", "P9_ALU_2C"])
    b.compose("P9_StoreAndALUOp_4C", ["P9_LS_1C", "P9_ALU_3C"])
    b.compose("P9_ALUOpAndALUOp_4C", ["P9_ALU_2C", "P9_ALU_2C"])
    b.compose("P9_ALU2OpAndALU2Op_6C", ["P9_ALU_3C", "P9_ALU_3C"])
    b.compose("P9_LoadAndDPOp_12C", ["P9_LS_5C", "P9_DP_7C"])
    b.compose("P9_LoadAndPrefixedOp_9C", ["P9_LS_5C", "P10_PrefixedLoad_4C"])

    b.set_parameters(MachineParameters(
        issue_width=8,
        load_latency=5,
        mispredict_penalty=16,
        loop_buffer_size=60,
        micro_op_buffer_size=0,  # list scheduler treats issue as in-order
        unsupported_features=POWER9_UNSUPPORTED_FEATURES,
        post_ra_scheduler=True,
        complete_model=True,
    ))
    return b.build()
