import argparse
import queue
import sys
import time

# Import our modular components
from mpvmc import (
    __version__,
    Config,
    LandmarkOSCSender,
    MpVmcError,
    OpenCVCamera,
    PreviewWindow,
    Tracker,
    TrackerState,
    VMCSender,
    get_config,
)

# Parse command line arguments
parser = argparse.ArgumentParser(description='MediaPipe Holistic tracking with VMC/OSC output')
parser.add_argument('--config', default='config.json', help='Configuration file path (default: config.json)')
parser.add_argument('--create-config', action='store_true', help='Create default configuration file and exit')
parser.add_argument('--show-config', action='store_true', help='Show current configuration and exit')
parser.add_argument('--version', action='store_true', help='Show version information and exit')
parser.add_argument('--vmc-addr', help='VMC target address (overrides config)')
parser.add_argument('--vmc-port', type=int, help='VMC target port (overrides config)')
parser.add_argument('--camera', type=int, help='Camera device ID (overrides config)')
parser.add_argument('--no-mirror', action='store_true', help='Disable horizontal flip (mirror mode)')
parser.add_argument('--osc', action='store_true', help='Also send raw landmarks as JSON over OSC')
parser.add_argument('--preview', action='store_true', help='Show camera preview window (debug mode, press q to quit)')
parser.add_argument('--verbose', action='store_true', help='Log a tracking summary about once per second')


def load_config(args) -> Config:
    """Load configuration and apply command line overrides"""
    config = get_config()
    if args.config != 'config.json':
        config.reload(args.config)

    if args.vmc_addr:
        config.set('vmc', 'address', args.vmc_addr)
    if args.vmc_port:
        config.set('vmc', 'port', args.vmc_port)
    if args.camera is not None:
        config.set('camera', 'device_id', args.camera)
    if args.no_mirror:
        config.set('camera', 'mirror', False)
    if args.osc:
        config.set('osc', 'enabled', True)
    if args.preview:
        config.set('display', 'show_window', True)
    return config


def print_summary(config):
    camera_config = config.get('camera')
    tracking_config = config.get('tracking')
    vmc_config = config.get('vmc')
    print("📋 Configuration:")
    print(f"  Camera: device={camera_config['device_id']}, "
          f"{camera_config['width']}x{camera_config['height']}@{camera_config['fps']}fps")
    print(f"  Tracking: face={tracking_config['enable_face']}, hands={tracking_config['enable_hands']}, "
          f"pose={tracking_config['enable_pose']}, smoothing={tracking_config['smoothing_factor']:.2f}")
    print(f"  VMC: enabled={vmc_config['enabled']}, {vmc_config['address']}:{vmc_config['port']}")


def build_tracker(config):
    """Create the tracker and register camera, processor, senders and preview.

    Returns (tracker, preview); preview is None unless display.show_window is set.
    """
    # Imported here so --help and --show-config work without mediapipe installed
    from mpvmc.holistic_processor import HolisticProcessor

    tracker = Tracker(config)
    preview = None
    try:
        camera_config = config.get('camera')
        camera = OpenCVCamera(mirror=camera_config['mirror'], buffer_size=camera_config['buffer_size'])
        tracker.set_camera_source(camera)
        camera.open(camera_config['device_id'], camera_config['width'],
                    camera_config['height'], camera_config['fps'])

        tracker.set_processor(HolisticProcessor(config))

        vmc_config = config.get('vmc')
        if vmc_config['enabled']:
            tracker.set_vmc_sender(VMCSender(vmc_config['address'], vmc_config['port']))
            print(f"🌐 VMC Target: {vmc_config['address']}:{vmc_config['port']}")

        osc_config = config.get('osc')
        if osc_config['enabled']:
            tracker.set_osc_sender(LandmarkOSCSender(
                osc_config['host'], osc_config['port'], queue_size=osc_config['queue_size']))
            print(f"🌐 OSC Target: {osc_config['host']}:{osc_config['port']}")

        display_config = config.get('display')
        if display_config['show_window']:
            preview = PreviewWindow(display_config['window_title'])
            tracker.set_preview_window(preview)
            print("🖼️  Preview window enabled (press q to quit)")
    except BaseException:
        # Release whatever was registered before the failure
        try:
            tracker.close()
        except MpVmcError as e:
            print(f"⚠️  Cleanup error: {e}")
        raise
    return tracker, preview


def run(tracker, verbose, fps, preview=None):
    """Block until Ctrl+C or q in the preview, optionally logging a summary every ~second"""
    subscription = tracker.subscribe() if verbose else None
    received = 0
    while tracker.state is TrackerState.RUNNING:
        if preview is not None and preview.quit_requested:
            print("🛑 Quit requested from preview window")
            return
        if subscription is None:
            time.sleep(0.5)
            continue
        try:
            snapshot = subscription.get(timeout=0.5)
        except queue.Empty:
            continue
        received += 1
        if received % fps == 0:
            print(f"🎯 Frame {snapshot.frame_number}: face={snapshot.face is not None}, "
                  f"leftHand={snapshot.left_hand is not None}, "
                  f"rightHand={snapshot.right_hand is not None}, "
                  f"pose={snapshot.pose is not None}")


def main():
    """Main application entry point"""
    args = parser.parse_args()

    if args.version:
        print(f"mp-vmc version {__version__}")
        return 0

    config = load_config(args)

    # Handle configuration commands
    if args.create_config:
        config.create_default_config_file()
        return 0

    if args.show_config:
        config.print_config()
        return 0

    try:
        config.validate()
        if args.verbose:
            print_summary(config)
        tracker, preview = build_tracker(config)
    except (MpVmcError, ImportError) as e:
        print(f"❌ Setup failed: {e}")
        print("🛑 Cannot initialize tracking")
        return 1

    try:
        tracker.start()
        print("🚀 Tracking started. Press Ctrl+C to stop.")
        run(tracker, args.verbose, config.get('camera', 'fps'), preview)
    except KeyboardInterrupt:
        print("\n🛑 Interrupted by user")
    finally:
        if tracker.state is not TrackerState.CLOSED:
            try:
                tracker.close()
            except MpVmcError as e:
                print(f"⚠️  Cleanup error: {e}")
        if tracker.last_error:
            print(f"ℹ️  Last frame error: {tracker.last_error}")
        print("✅ Cleanup completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
