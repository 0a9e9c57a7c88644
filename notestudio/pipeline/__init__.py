"""
Pipeline Subpackage - upload → analyze → generate → export

    - state.py: Stages and the serialisable PipelineState
    - history.py: Append-only generation history
    - reducer.py: Pure (state, event) -> state transitions
    - controller.py: Async controller calling the remote services
    - services.py: Contracts for the analysis/generation/save/lyrics services
    - upload.py: Local upload validation

Import from the modules directly, e.g.
    from notestudio.pipeline.controller import PipelineController
"""
