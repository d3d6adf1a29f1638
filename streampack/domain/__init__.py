"""
This package contains the core domain models of streampack.

The domain layer describes what a packaging job is made of, independently of
how the engine is driven or where files end up.

Modules:
    exceptions.py: The typed failures of a packaging session, each tagged with
                   the stage it occurred in.
    media.py: The `Media` source descriptor, which wraps `ffprobe` to expose
              duration, dimensions and bitrates of the input.
    representation.py: Quality rungs (`Representation`) and the ordered
                       `RepresentationLadder`, plus automatic ladder generation.
    formats.py: Codec formats (`X264`, `HEVC`, `VP9`).
    profiles.py: The HLS, DASH and file packaging profiles.
    invocation.py: The immutable `EngineInvocation` handed to the engine runner.
"""
