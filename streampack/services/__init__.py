"""
Services Package for streampack.

Services coordinate the domain models and the engine:

- **Command building (`CommandBuilder`, filters):** turn a source, a format and
  a profile into the exact FFmpeg argument list.
- **Stream orchestration (`HLS`, `DASH`, `StreamToFile`):** resolve output
  placement, run the engine, write manifests, upload and clean up.
- **Key rotation (`HLSKeyInfo`):** issue fresh AES keys while encrypted HLS
  segments are being written.
- **Playlists and metadata (`HLSPlaylist`, `Metadata`):** render the HLS master
  playlist and describe the produced output.
- **Cloud targets and logging (`CloudTarget`, `ErrorLog`):** move output to
  remote storage and keep a record of failed sessions.
"""
