"""Protocol libraries bundled with the SPS30 sensor test sequence."""
