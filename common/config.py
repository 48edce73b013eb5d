from pydantic_settings import BaseSettings


class SpeakerStreamSettings(BaseSettings):
    log_level: str = "INFO"
    check_timestamps: bool = True
    stop_on_error: bool = False

    model_config = {"env_prefix": "SPEAKER_STREAM_"}
