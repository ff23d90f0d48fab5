from .step_10_wifi_profile import StageWifiProfileStep
from .step_20_connect_helper import WriteConnectHelperStep
from .step_30_launcher import InjectLauncherStep
from .step_40_startnet import DisableStartnetStep
from .step_50_module_wifi_prompt import DisableModuleWifiPromptStep

__all__ = [
    "StageWifiProfileStep",
    "WriteConnectHelperStep",
    "InjectLauncherStep",
    "DisableStartnetStep",
    "DisableModuleWifiPromptStep",
]
