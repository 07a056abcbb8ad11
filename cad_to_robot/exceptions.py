class ConversionError(Exception):
    """
    Fatal error, the conversion run is aborted
    """


class ConfigError(ConversionError):
    pass


class ConfigFileNotFound(ConfigError):
    def __init__(self, filename: str):
        super().__init__(f"ERROR: Configuration file {filename} does not exist")
        self.filename: str = filename


class ConfigParseError(ConfigError):
    def __init__(self, message: str):
        super().__init__(f"ERROR: Unable to parse configuration: {message}")
        self.message: str = message


class FrameNotFound(ConversionError):
    def __init__(self, component_name: str, frame_name: str):
        super().__init__(
            f"ERROR: Frame {frame_name} does not exist on component {component_name}"
        )
        self.component_name: str = component_name
        self.frame_name: str = frame_name


class JointDataError(ConversionError):
    pass


class ModelError(ConversionError):
    pass
