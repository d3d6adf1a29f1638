"""
Configuration Package for streampack.

This package centralizes the static configuration of the packager. Keeping the
defaults out of the service code makes it easy to adjust segment durations,
key sizes or cleanup timing without touching the orchestration logic.

This package includes settings for:
- Common application settings like logging format, temporary storage and the
  location of the FFmpeg executables (overridable through `config.user.yaml`).
- Streaming defaults for HLS and DASH packaging, key rotation and playlists.
- Capture device syntax per operating system.
"""
