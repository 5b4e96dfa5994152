"""HTTP API for the MindShift progression engine"""
