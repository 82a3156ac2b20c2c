"""
SenseVoice speech recognition: token vocabulary, CTC decoding, transcript cleaning,
ONNX inference, resource loading and the per-context processor.
"""
