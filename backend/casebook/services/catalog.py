"""Fixed catalog of forensic steps, grouped by investigation phase."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Phase(str, Enum):
    OS_ARTIFACTS = "OS_ARTIFACTS"
    MEMORY = "MEMORY"
    MALWARE_STATIC = "MALWARE_STATIC"
    MALWARE_DYNAMIC = "MALWARE_DYNAMIC"
    MALWARE_REVERSING = "MALWARE_REVERSING"


CANONICAL_PHASES: tuple[Phase, ...] = (
    Phase.OS_ARTIFACTS,
    Phase.MEMORY,
    Phase.MALWARE_STATIC,
    Phase.MALWARE_DYNAMIC,
    Phase.MALWARE_REVERSING,
)

PHASE_TITLES = {
    Phase.OS_ARTIFACTS: "Phase 1: Deep OS & Artifacts",
    Phase.MEMORY: "Phase 2: Memory Analysis",
    Phase.MALWARE_STATIC: "Phase 3.1: Static Analysis",
    Phase.MALWARE_DYNAMIC: "Phase 3.2: Dynamic Analysis",
    Phase.MALWARE_REVERSING: "Phase 3.3: Reverse Engineering",
}


class ForensicStep(BaseModel):
    id: str
    title: str
    phase: Phase
    description: str
    forensic_value: list[str] = Field(default_factory=list)
    tool: Optional[str] = None
    location: Optional[str] = None
    is_read_only: bool = False


def _step(id: str, title: str, phase: Phase, description: str, forensic_value: list[str], **kw) -> ForensicStep:
    return ForensicStep(id=id, title=title, phase=phase, description=description, forensic_value=forensic_value, **kw)


OS = Phase.OS_ARTIFACTS
MEM = Phase.MEMORY
STATIC = Phase.MALWARE_STATIC
DYNAMIC = Phase.MALWARE_DYNAMIC
REV = Phase.MALWARE_REVERSING

FORENSIC_STEPS: tuple[ForensicStep, ...] = (
    # Phase 1: deep OS & artifacts
    _step("autopsy", "Autopsy", OS,
          "Forensics platform providing a GUI for hard drive analysis. Used for file system analysis, "
          "web history, and connected devices.",
          ["System Info", "Browsing History", "User Login History", "Previously Connected Devices"],
          tool="Autopsy"),
    _step("event_viewer", "Event Viewer", OS,
          "Windows component logging system, security, and application events. Use Sysmon for enhanced visibility.",
          ["User activity", "Security events", "Process creation", "Network connections"],
          tool="Event Viewer / Sysmon / DeepBlueCLI"),
    _step("registry", "Registry Analysis", OS,
          "Hierarchical database storing configuration for system, apps, and hardware.",
          ["User activity tracking", "Application configuration", "System configuration"],
          location="Hives (SYSTEM, SOFTWARE, NTUSER.DAT, etc.)"),
    _step("network_forensics", "Network Forensics", OS,
          "Examining how computers communicate. Vital for identifying attacks and data exfiltration.",
          ["Traffic analysis", "Connection logs", "Suspicious IP/Domains"],
          tool="Wireshark / TCPView"),
    _step("task_scheduler", "Task Scheduler", OS,
          "Internal mechanism for automated tasks. Critical for identifying persistence.",
          ["Who created the task", "When it runs", "What action it executes"],
          location="C:\\Windows\\System32\\Tasks"),
    _step("user_activity", "User Activity", OS,
          "Analysis of folders like Downloads, Documents, and Desktop to understand user habits and file manipulation.",
          ["Downloaded suspicious files", "Phishing attachments (Outlook/Thunderbird)", "File modifications"],
          location="Users\\<User>\\Downloads, Desktop, Documents"),
    _step("system_configuration", "System Configuration", OS,
          "Analyzing installed applications, GPO changes, and local users/groups.",
          ["Suspicious installed software", "Disabled security policies (Defender/Firewall)",
           "New admin accounts created"],
          location="Control Panel / Group Policy"),
    _step("thumbcache", "Thumbcache", OS,
          "Thumbnail cache allowing recovery of deleted images or proof of image existence.",
          ["Recover deleted images", "Prove user viewed specific images"],
          location="%userprofile%\\AppData\\Local\\Microsoft\\Windows\\Explorer", tool="Thumbcache Viewer"),
    _step("jump_lists", "Jump Lists", OS,
          "Dynamic lists of recently opened files/items on the taskbar or start menu.",
          ["Recent file access", "Lateral movement traces (RDP)", "File execution history"],
          location="%userprofile%\\AppData\\Roaming\\Microsoft\\Windows\\Recent\\AutomaticDestinations",
          tool="JLECmd.exe"),
    _step("recycle_bin", "Recycle Bin", OS,
          "Deleted files storage. Creates $I (Metadata) and $R (Data) files.",
          ["Original file path", "File size", "Deletion date"],
          location="C:\\$Recycle.Bin", tool="RBCmd.exe"),
    _step("prefetch", "Prefetch Files", OS,
          "Optimization files created on first application run.",
          ["Executable name", "Full path", "Run count", "Last run time", "Loaded DLLs"],
          location="%SystemRoot%\\Prefetch", tool="PECmd.exe"),
    _step("shimcache", "ShimCache (AppCompatCache)", OS,
          "Tracks executable file compatibility information.",
          ["File names and paths", "Last modification time", "Binary size", "Execution flag"],
          location="HKLM\\SYSTEM\\CurrentControlSet\\Control\\SessionManager\\AppCompatCache",
          tool="AppCompatCacheParser.exe"),
    _step("amcache", "Amcache", OS,
          "Registry hive storing SHA1 hashes of installed programs/EXEs.",
          ["Program name and path", "Last run time", "SHA1 Hash", "Binary version"],
          location="C:\\Windows\\appcompat\\Programs\\Amcache.hve", tool="AmcacheParser.exe"),
    _step("srum", "SRUM (System Resource Usage Monitor)", OS,
          "Database recording application performance, network usage, and power consumption.",
          ["Network activity per process", "Bytes sent/received", "Power usage"],
          location="C:\\Windows\\System32\\sru\\SRUDB.dat", tool="SrumECmd.exe"),
    _step("ads", "Alternate Data Streams (ADS)", OS,
          "NTFS feature allowing data to be attached to a file without changing its size visibly.",
          ["Hidden data extraction", "Identifier for downloaded files (Zone.Identifier)"],
          location="File system (NTFS)", tool="Sysinternals streams.exe / PowerShell Get-Item -Stream"),
    _step("lnk_files", "LNK Files (Shortcuts)", OS,
          "Shortcut files containing metadata about the target file.",
          ["Target full path", "Creation/Access timestamps", "Volume info"],
          location="%userprofile%\\Recent", tool="LECmd.exe"),
    _step("wordwheel", "WordWheelQuery", OS,
          "Registry key containing search terms used in Windows Explorer.",
          ["User search terms", "Intent analysis"],
          location="HKCU\\Software\\Microsoft\\Windows\\CurrentVersion\\Explorer\\WordWheelQuery"),
    _step("ntuser", "NTUSER.DAT", OS,
          "User-specific registry hive.",
          ["User settings", "Software configuration", "Activity history"],
          location="%userprofile%\\NTUSER.DAT", tool="RegRipper / RegistryExplorer"),
    _step("powershell_history", "PowerShell History", OS,
          "Text file containing history of typed PowerShell commands.",
          ["Executed scripts", "Downloaded payloads", "Attacker commands"],
          location="%userprofile%\\AppData\\Roaming\\Microsoft\\Windows\\PowerShell\\PSReadLine\\ConsoleHost_history.txt"),
    _step("mft", "Master File Table (MFT)", OS,
          "NTFS database with a record for every file.",
          ["Timestamps (Created, Modified, Accessed, Entry Modified)", "Deleted file recovery"],
          location="$MFT (Root of partition)", tool="MFTECmd.exe"),
    _step("userassist", "UserAssist", OS,
          "Registry keys tracking GUI-launched applications.",
          ["Run count", "Last execution time", "ROT13 encoded names"],
          location="HKCU\\...\\Explorer\\UserAssist", tool="RegRipper"),
    _step("setupapi", "SetupAPI & USB Devices", OS,
          "Logs regarding hardware installation, specifically USB drives.",
          ["USB Vendor/Product ID", "Serial Number", "First/Last connection times"],
          location="C:\\Windows\\inf\\setupapi.dev.log", tool="USBDeview / Registry Explorer"),
    _step("browser_artifacts", "Browser Artifacts", OS,
          "History, cookies, cache, and downloads from web browsers.",
          ["Browsing history", "Downloads", "Session tokens"],
          location="%LocalAppData%\\Google\\Chrome\\User Data\\Default", tool="BrowserHistoryView / SQLiteBrowser"),
    # Phase 2: memory
    _step("memory_dump", "Memory Acquisition", MEM,
          "Capturing RAM content during incident response.",
          ["Decryption keys", "Running processes", "Network connections", "Open files"],
          tool="FTK Imager / DumpIt / WinPmem"),
    _step("volatility_analysis", "Volatility Analysis", MEM,
          "Using Volatility framework to analyze the memory image.",
          ["PsList (Processes)", "NetScan (Network)", "Malfind (Injected code)"],
          tool="Volatility"),
    _step("anomalous_processes", "Anomalous Processes", MEM,
          "Identifying suspicious processes (wrong parent, wrong path, misspelled names).",
          ["Identify malware masquerading as system processes (svchost, explorer)"],
          tool="Volatility (pslist, pstree)"),
    _step("suspicious_services", "Suspicious Services", MEM,
          "Analyzing background services for persistence.",
          ["Malicious DLLs loaded by svchost", "Unsigned drivers"],
          location="HKLM\\SYSTEM\\CurrentControlSet\\Services", tool="Volatility (svcscan)"),
    # Phase 3.1: static analysis
    _step("ma_general", "General Inspection", STATIC,
          "Calculate MD5 hashes. Upload to VirusTotal to check reputation and attribution.",
          ["File Hash", "Attribution", "Reputation Score"],
          tool="CertUtil / VirusTotal"),
    _step("ma_strings", "Strings Analysis", STATIC,
          "Use Strings tool. Look for embedded IPs, URLs, filenames, PDB paths, or error messages that reveal "
          "functionality.",
          ["C2 IPs/URLs", "PDB Paths", "Hardcoded credentials"],
          tool="Strings"),
    _step("ma_motw", "Mark Of The Web (MotW)", STATIC,
          "Check the 'Zone.Identifier' alternate data stream to see where the file originated.",
          ["Origin URL", "Download Status"],
          tool="PowerShell: Get-Content -Stream Zone.Identifier"),
    _step("ma_pe_headers", "CFF Explorer / PE Headers", STATIC,
          'View metadata, compile time, sections, and import tables. Look for anomalies in "File Type" or '
          '"Build Date".',
          ["Compile Time", "Import anomalies", "Section names"],
          tool="CFF Explorer"),
    _step("ma_packers", "PEID / Packers Check", STATIC,
          "Scan for signatures of packers (like UPX) which hide code. High entropy indicates packed/encrypted code.",
          ["Detected Packer", "Entropy Score"],
          tool="PEID"),
    _step("ma_pestudio", "PEStudio Analysis", STATIC,
          "Automated static assessment. Flags suspicious imports, embedded files, and Virustotal score.",
          ["Suspicious Imports", "Embedded Files", "Indicators"],
          tool="PEStudio"),
    _step("ma_macros", "Office Macros", STATIC,
          "If analyzing DOC/XLS, extract vbaProject.bin. Check for AutoOpen/AutoExec macros.",
          ["Malicious VBA", "Auto-execution triggers"],
          tool="olevba / oletools"),
    _step("ma_cyberchef", "CyberChef Decoding", STATIC,
          "If obfuscated strings (Base64, XOR) are found, use CyberChef to decode them.",
          ["Decoded C2 config", "Hidden commands"],
          tool="CyberChef"),
    # Phase 3.2: dynamic analysis
    _step("ma_dynamic_checklist", "Suggestions & Pre-Execution Checklist", DYNAMIC,
          "Pre-flight checks to ensure safe and effective dynamic analysis.",
          ["Safety", "Data Capture Quality"],
          is_read_only=True),
    _step("ma_regshot", "Registry Monitoring", DYNAMIC,
          'Take "1st Shot" (Before run) and "2nd Shot" (After run). Compare to see exactly which keys were '
          "added/modified for persistence.",
          ["Persistence Keys", "Configuration Changes"],
          tool="RegShot"),
    _step("ma_procmon", "Process Monitoring", DYNAMIC,
          "Capture real-time filesystem, registry, and process activity. Filter by Process Name to see dropped files.",
          ["Dropped Files", "Child Processes", "File Modifications"],
          tool="Process Monitor (Procmon)"),
    _step("ma_traffic", "Traffic Analysis", DYNAMIC,
          "Capture packets. Look for DNS queries, HTTP POST requests to C2 servers, or non-standard port usage.",
          ["C2 IPs", "Data Exfiltration", "Beaconing intervals"],
          tool="Wireshark / TCPView"),
    _step("ma_autoruns", "Persistence Check", DYNAMIC,
          "Check for new entries in Run Keys, Scheduled Tasks, or Services created by the malware.",
          ["Persistence Mechanism", "Launch command"],
          tool="Sysinternals AutoRuns"),
    _step("ma_apimonitor", "API Monitor", DYNAMIC,
          "Hook and track specific Win32 API calls (e.g., CreateFile, InternetOpen) to see intent.",
          ["API Call Sequence", "Intent Analysis"],
          tool="API Monitor"),
    # Phase 3.3: reverse engineering
    _step("ma_deobfuscation", "De-Obfuscation Strategy", REV,
          'Check for NOP sleds (0x90), huge files filled with junk, or "Packed" sections.',
          ["Unpacked Binary", "Clean Code"],
          tool="Debloat / Generic Unpacker"),
    _step("ma_static_reversing", "Static Reversing", REV,
          "Disassemble the binary. View Control Flow Graph (CFG). Use Python console bv.read() to extract "
          "decrypted data from memory offsets.",
          ["Control Flow Graph", "Decrypted Strings"],
          tool="Binary Ninja / IDA / Ghidra"),
    _step("ma_dynamic_reversing", "Dynamic Reversing", REV,
          "Dynamic instrumentation. Inject scripts into the running process to hook functions, bypass SSL "
          "pinning, or dump decrypted strings from memory.",
          ["Runtime Memory Dump", "SSL Bypass"],
          tool="Frida"),
)

_BY_ID = {s.id: s for s in FORENSIC_STEPS}
STEP_IDS = frozenset(_BY_ID)


def get_step(step_id: str) -> Optional[ForensicStep]:
    return _BY_ID.get(step_id)


def steps_for_phase(phase: Phase) -> list[ForensicStep]:
    return [s for s in FORENSIC_STEPS if s.phase == phase]


def phase_title(phase: str) -> str:
    try:
        return PHASE_TITLES[Phase(phase)]
    except ValueError:
        return str(phase).replace("_", " ", 1)
