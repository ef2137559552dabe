"""
sim — Perception and mode-arbitration core
==========================================

Modules
-------
random_walk
    Bounded stochastic perturbation helpers.
messages
    :class:`DrivingMode` and the records exchanged on the buses.
activity
    :class:`Activity` start / step / stop base class.
sensors
    Scenario-driven :class:`Camera` and :class:`Radar` simulators.
fusion
    :class:`SceneFusion` combining camera and radar into a scene.
mode_policy
    :class:`ModePolicy` constants and the scene classification rule.
mode_arbiter
    :class:`ModeArbiter` hysteretic driving-mode state machine.
emergency_braking
    :class:`EmergencyBraking` distance-proportional brake instructions.
publishers
    Per-mode telemetry publishers and the :class:`CarDataForwarder`.
pipeline
    :class:`Pipeline` background-thread orchestrator.
recorder
    :class:`TelemetryRecorder` pandas export of the telemetry stream.
"""
