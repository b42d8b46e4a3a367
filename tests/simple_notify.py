#!/usr/bin/env python3

import logging
import ssdp_discovery_protocol as ssdp

logging.basicConfig(level=logging.DEBUG)

device = ssdp.Device(
    notification_type=ssdp.SearchTarget.root_device(),
    service_name="uuid:2fac1234-31f8-11b4-a222-08002b34c003::upnp:rootdevice",
    location="http://192.168.1.10:8080/description.xml",
    boot_id=1,
    config_id=1,
)

options = ssdp.NotifyOptions.default_for(ssdp.SpecVersion.V11)

# Each notification increments device.boot_id; persist it if the device should keep counting across restarts.
ssdp.device_available(device, options)
ssdp.device_update(device, options)
ssdp.device_unavailable(device, options)
print(f"boot_id is now {device.boot_id}")
