"""SDF Waveform Converter -- Python tooling for full-waveform laser-scanner acquisitions.

Reads .sdf files through the vendor ``sdfifc`` digitizer library and turns
each pulse's digitized waveforms into discrete 3-D points.

This package provides tools for:
- Opening, indexing and reading .sdf files (records, file info, calibration tables)
- Classifying sample blocks by detector channel
- Detecting returns with per-channel threshold/width/kurtosis settings
- Aligning returns on the reference pulse and projecting them to scanner coordinates
- Writing discrete-return .sdc files

Key principles:
- One reference block and one reference peak per record, or the record is rejected
- Double precision for all timing and geometry
- The native library is single-threaded: one session, one owner

Main subpackages:
- analysis: Peak detection, reference alignment, geometry, record decomposition, conversion
- export: Point sinks (.sdc writer/reader, in-memory collector)
- ingest: Native library binding, digitizer session, channel classification
- models: Data models (Record, SampleBlock, FileInfo, Peak, Point, DetectionPolicy)
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
